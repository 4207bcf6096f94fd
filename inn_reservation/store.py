from django.apps import apps
from django.conf import settings
from pymongo import MongoClient


class MongoStore:
    """Holds the process-wide MongoDB client and the collections this app uses."""

    def __init__(self, client, db_name=None):
        self.client = client
        if db_name:
            self.db = client[db_name]
        else:
            # Database named in the connection URI
            self.db = client.get_database()

    @classmethod
    def from_settings(cls):
        # connect=False: the first operation opens the pool, not construction
        client = MongoClient(settings.MONGODB_URI, connect=False, tz_aware=True)
        return cls(client, settings.MONGODB_NAME or None)

    @property
    def rooms(self):
        return self.db['rooms']

    @property
    def reservations(self):
        return self.db['reservations']

    def ping(self):
        self.client.admin.command('ping')

    def close(self):
        self.client.close()


def get_store():
    return apps.get_app_config('inn_reservation').store
