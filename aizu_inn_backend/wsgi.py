"""
WSGI config for aizu_inn_backend.

It exposes the WSGI callable as a module-level variable named ``application``.
The database is checked before the first request; failing that exits the
process.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'aizu_inn_backend.settings')

application = get_wsgi_application()

from inn_reservation.startup import check_connections  # noqa: E402

check_connections()
