"""WSGI config for the Optique de Bourbon CMS."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "odb.settings")

application = get_wsgi_application()
