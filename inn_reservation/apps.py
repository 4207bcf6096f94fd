from django.apps import AppConfig


class InnReservationConfig(AppConfig):
    name = 'inn_reservation'
    verbose_name = 'Inn reservations'

    store = None

    def ready(self):
        from .store import MongoStore

        self.store = MongoStore.from_settings()
