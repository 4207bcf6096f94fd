"""Connection checks run once before the process starts serving requests."""
import atexit
import logging
import sys

from django.core.mail import get_connection
from pymongo.errors import PyMongoError

from .store import get_store

logger = logging.getLogger(__name__)


def check_store(store):
    """Ping the database; the process cannot serve without it."""
    try:
        store.ping()
    except PyMongoError:
        logger.critical('MongoDB connection error', exc_info=True)
        sys.exit(1)
    logger.info('Connected to MongoDB database %s', store.db.name)
    atexit.register(store.close)


def check_mail_transport():
    """Log whether the mail backend can be reached. Never fatal."""
    connection = get_connection(fail_silently=False)
    try:
        connection.open()
        connection.close()
    except Exception:
        logger.error('Mail transport configuration error', exc_info=True)
        return False
    logger.info('Mail transport %s is ready', type(connection).__name__)
    return True


def check_connections():
    check_store(get_store())
    check_mail_transport()
