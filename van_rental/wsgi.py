"""WSGI config for van_rental project."""

import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "van_rental.settings")

application = get_wsgi_application()
