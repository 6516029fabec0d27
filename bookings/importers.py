"""Fleet import from CSV/XLS/XLSX files (used by the upload view and the management command)."""

import csv
import logging
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

import openpyxl
import xlrd
from django.db import transaction

from .models import Vehicle

logger = logging.getLogger(__name__)

RATE_COLUMNS = {
    "rate_4h": ["rate_4h", "4h", "4 hodiny"],
    "rate_6h": ["rate_6h", "6h", "6 hodin"],
    "rate_12h": ["rate_12h", "12h", "12 hodin"],
    "rate_24h": ["rate_24h", "24h", "24 hodin"],
    "daily_rate": ["daily_rate", "daily", "Den (více dní)", "Den"],
}


def _parse_decimal(value):
    try:
        text = str(value).strip().replace(" ", "").replace(",", ".")
        return Decimal(text)
    except (InvalidOperation, AttributeError, TypeError):
        return None


def _parse_date(value):
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _pick_value(row, keys):
    """Return the first non-empty value for any matching key in the row."""
    for key in keys:
        if key in row:
            value = row[key]
            if isinstance(value, str):
                value = value.strip()
            if value not in ("", None):
                return value
    return None


def _clean_text_value(value):
    """
    Convert CSV/Excel cell values into cleaned strings.

    Treat ".", "-" and empty cells as missing.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return "" if text in {"", ".", "-"} else text


def _read_csv_rows(upload):
    decoded = upload.read().decode("utf-8-sig").splitlines()
    return list(csv.DictReader(decoded))


def _coerce_cell(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return "" if value is None else value


def _table_rows(table):
    """Turn a sheet (header row first) into dicts keyed by the stripped header names."""
    table = iter(table)
    header = next(table, None)
    if not header:
        return []
    keys = [str(cell).strip() if cell is not None else "" for cell in header]
    return [
        {key: _coerce_cell(row[idx] if idx < len(row) else None) for idx, key in enumerate(keys)}
        for row in table
    ]


def _read_excel_rows(upload):
    sheet = xlrd.open_workbook(file_contents=upload.read()).sheet_by_index(0)
    return _table_rows(sheet.row_values(idx) for idx in range(sheet.nrows))


def _read_xlsx_rows(upload):
    upload.seek(0)
    workbook = openpyxl.load_workbook(upload, read_only=True, data_only=True)
    try:
        return _table_rows(workbook.active.iter_rows(values_only=True))
    finally:
        workbook.close()


def load_rows(upload):
    filename = (getattr(upload, "name", "") or "").lower()
    if filename.endswith(".xlsx"):
        return _read_xlsx_rows(upload)
    if filename.endswith(".xls"):
        return _read_excel_rows(upload)
    return _read_csv_rows(upload)


def match_brand(value) -> str | None:
    """Map free-text model names ("MB Sprinter 316", "fiat ducato") onto the fleet brands."""
    text = re.sub(r"[\s\-_]+", " ", str(value or "")).strip().lower()
    if not text:
        return None
    for code, _ in Vehicle.BRAND_CHOICES:
        if code.lower() == text:
            return code
    for code, _ in Vehicle.BRAND_CHOICES:
        model_word = code.split()[-1].lower()
        if model_word in text.split():
            return code
    return None


def normalize_vehicle_row(row):
    """Normalize a raw row (CSV or XLS) into vehicle fields we support."""
    plate = _pick_value(row, ["license_plate", "plate", "SPZ", "spz", "RZ"])
    if plate:
        plate = str(plate).strip().replace(" ", "").upper()

    year_val = _pick_value(row, ["year", "Year", "Rok výroby", "rok"])
    try:
        year = int(float(year_val))
    except (TypeError, ValueError):
        year = None

    rates = {}
    for field, keys in RATE_COLUMNS.items():
        raw = _pick_value(row, keys)
        rates[field] = _parse_decimal(raw) if raw is not None else None

    return {
        "license_plate": plate or "",
        "brand": match_brand(_pick_value(row, ["brand", "Značka", "model", "Model"])),
        "vin": _clean_text_value(_pick_value(row, ["vin", "VIN"])),
        "year": year,
        "stk_date": _parse_date(_pick_value(row, ["stk_date", "STK", "STK do"])),
        "vignette_until": _parse_date(_pick_value(row, ["vignette_until", "Dálniční známka do"])),
        "insurance_info": _clean_text_value(_pick_value(row, ["insurance_info", "Pojištění"])) or None,
        **rates,
    }


@transaction.atomic
def import_vehicle_rows(rows) -> tuple[int, int]:
    """
    Create or update vehicles by license plate.

    Rows without plate, brand or year, or with a negative rate, are skipped.
    Missing rates keep the stored value (or 0 for new vehicles).
    """
    imported, skipped = 0, 0
    for row in rows:
        normalized = normalize_vehicle_row(row)
        plate = normalized["license_plate"]
        rates = {field: normalized[field] for field in RATE_COLUMNS}

        if not plate or not normalized["brand"] or not normalized["year"]:
            skipped += 1
            continue
        if any(value is not None and value < 0 for value in rates.values()):
            logger.warning("Vehicle import: negative rate for %s, row skipped", plate)
            skipped += 1
            continue

        vehicle = Vehicle.objects.filter(license_plate=plate).first()
        if vehicle is None:
            vehicle = Vehicle(license_plate=plate)
            for field in RATE_COLUMNS:
                setattr(vehicle, field, Decimal("0.00"))

        vehicle.brand = normalized["brand"]
        vehicle.year = normalized["year"]
        for field in ("vin", "stk_date", "vignette_until", "insurance_info"):
            if normalized[field]:
                setattr(vehicle, field, normalized[field])
        for field, value in rates.items():
            if value is not None:
                setattr(vehicle, field, value)
        vehicle.save()
        imported += 1

    logger.info("Vehicle import finished: %d imported, %d skipped", imported, skipped)
    return imported, skipped
