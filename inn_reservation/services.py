import logging
from collections.abc import Mapping

from bson import ObjectId
from django.utils import timezone

from . import validation
from .exceptions import InvalidReservation, ReservationNotFound, RoomNotFound, RoomReferenceError
from .models import build_reservation
from .notifications import send_confirmation
from .serializers import ReservationSerializer

logger = logging.getLogger(__name__)


def _object_id(value):
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class ReservationService:
    """Room listing, reservation creation and lookup over one store."""

    def __init__(self, store, notifier=send_confirmation, clock=timezone.now):
        self.store = store
        self.notifier = notifier
        self.clock = clock

    def list_rooms(self):
        return list(self.store.rooms.find())

    def find_room(self, room_id):
        """Return the room document, or None for an unknown or malformed id."""
        oid = _object_id(room_id)
        if oid is None:
            return None
        return self.store.rooms.find_one({'_id': oid})

    def create_reservation(self, payload):
        if not isinstance(payload, Mapping):
            raise InvalidReservation(validation.collect_errors(payload))

        serializer = ReservationSerializer(data=payload)
        if not serializer.is_valid():
            logger.info('Validation errors: %s', serializer.errors['errors'])
            raise InvalidReservation(serializer.errors['errors'])
        data = serializer.validated_data

        room = self.find_room(data['roomId'])
        if room is None:
            logger.info('Room not found for roomId %s', data['roomId'])
            raise RoomReferenceError()

        reservation = build_reservation(data, room, created_at=self.clock())
        result = self.store.reservations.insert_one(reservation)
        reservation['_id'] = result.inserted_id
        logger.info('Reservation %s created for room %s', result.inserted_id, data['roomId'])

        self._notify(reservation)
        return reservation

    def _notify(self, reservation):
        try:
            self.notifier(reservation)
        except Exception:
            # Outcome of the notification never changes the booking result
            logger.exception('Confirmation dispatch failed for reservation %s', reservation['_id'])

    def get_reservation(self, reservation_id):
        """Return the reservation with the room as it is now under ``roomDetails``."""
        oid = _object_id(reservation_id)
        if oid is None:
            raise ReservationNotFound()
        reservation = self.store.reservations.find_one({'_id': oid})
        if reservation is None:
            raise ReservationNotFound()

        room = self.store.rooms.find_one({'_id': reservation['roomId']})
        if room is None:
            raise RoomNotFound()
        return dict(reservation, roomDetails=room)
