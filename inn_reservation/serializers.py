from datetime import datetime, timezone as dt_timezone

from bson import Decimal128, ObjectId
from rest_framework import serializers

from . import validation


def to_primitive(value):
    """Turn BSON values in a document into JSON-friendly ones."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, datetime) and value.tzinfo is None:
        # pymongo hands back naive UTC datetimes
        return value.replace(tzinfo=dt_timezone.utc)
    if isinstance(value, dict):
        return {key: to_primitive(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_primitive(item) for item in value]
    return value


class RoomSerializer(serializers.BaseSerializer):

    def to_representation(self, instance):
        return to_primitive(instance)


class ReservationSerializer(serializers.BaseSerializer):
    """
    Reads a reservation payload through the rule table and renders stored
    reservation documents.

    Validation errors come back as ``serializer.errors['errors']``, one
    ``{'field', 'message'}`` entry per broken rule.
    """

    def to_internal_value(self, data):
        errors = validation.collect_errors(data)
        if errors:
            raise serializers.ValidationError({'errors': errors})
        return validation.clean(data)

    def to_representation(self, instance):
        data = to_primitive(instance)
        # Stay dates are stored as midnight datetimes
        for key in ('checkIn', 'checkOut'):
            if isinstance(data.get(key), datetime):
                data[key] = data[key].date()
        return data
