"""
Document shapes for the ``rooms`` and ``reservations`` collections.

Rooms are maintained outside this app and only read here. Reservations are
written once by the creation workflow and never updated.
"""
from datetime import datetime, time

from bson import ObjectId
from django.db import models

GUEST_USER_ID = 'guest'

ROOM_SNAPSHOT_FIELDS = ('price', 'image', 'name')


class ReservationStatus(models.TextChoices):
    CONFIRMED = 'confirmed'


def stay_datetime(value):
    """BSON has no date type; stay dates are stored as midnight datetimes."""
    return datetime.combine(value, time.min)


def room_snapshot(room):
    return {field: room.get(field) for field in ROOM_SNAPSHOT_FIELDS}


def build_reservation(data, room, created_at):
    """Assemble a new reservation document from validated data and its room."""
    return {
        'userId': data.get('userId') or GUEST_USER_ID,
        'name': data['name'],
        'email': data['email'],
        'postalCode': data['postalCode'],
        'address': data['address'],
        'phone': data['phone'],
        'roomId': ObjectId(data['roomId']),
        'roomType': data['roomType'],
        'checkIn': stay_datetime(data['checkIn']),
        'checkOut': stay_datetime(data['checkOut']),
        'nights': data['nights'],
        'guests': data['guests'],
        'status': ReservationStatus.CONFIRMED.value,
        'createdAt': created_at,
        'roomDetails': room_snapshot(room),
    }
