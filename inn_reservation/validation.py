"""
Field rules for incoming reservation payloads.

Every rule is checked on its own so a caller gets one descriptor per broken
rule, not just the first failure of a field.
"""
import re
from collections import namedtuple
from collections.abc import Mapping
from datetime import datetime

from bson import ObjectId
from django.core.exceptions import ValidationError
from django.core.validators import EmailValidator

Rule = namedtuple('Rule', ['field', 'check', 'message'])

POSTAL_CODE_RE = re.compile(r'^\d{3}-\d{4}$')
PHONE_RE = re.compile(r'^\d{10,11}$')
ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
INTEGER_RE = re.compile(r'^[+-]?\d+$')

# Largest integer BSON can store
MAX_INT = 2 ** 63 - 1

_email_validator = EmailValidator()


def parse_date(value):
    """Return a ``date`` for a ``YYYY-MM-DD`` string, or None."""
    if not isinstance(value, str) or not ISO_DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return None


def parse_int(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and INTEGER_RE.match(value.strip()):
        value = int(value)
    if not isinstance(value, int) or abs(value) > MAX_INT:
        return None
    return value


def _trimmed(value):
    # Non-strings are trimmed as their text form
    return '' if value is None else str(value).strip()


# Checks take (value, payload) and return True when the rule holds.

def optional_string(value, payload):
    return value is None or isinstance(value, str)


def is_string(value, payload):
    return isinstance(value, str)


def required(value, payload):
    if value is None:
        return False
    return str(value) != ''


def required_trimmed(value, payload):
    return _trimmed(value) != ''


def trimmed_length(min_length, max_length):
    def check(value, payload):
        return min_length <= len(_trimmed(value)) <= max_length
    return check


def matches(pattern):
    def check(value, payload):
        return isinstance(value, str) and pattern.match(value) is not None
    return check


def is_email(value, payload):
    if not isinstance(value, str):
        return False
    try:
        _email_validator(value)
    except ValidationError:
        return False
    return True


def is_iso_date(value, payload):
    return parse_date(value) is not None


def after_field(other):
    def check(value, payload):
        start = parse_date(payload.get(other))
        end = parse_date(value)
        if start is None or end is None:
            # Unparseable dates are reported by their own format rules
            return True
        return end > start
    return check


def positive_int(value, payload):
    number = parse_int(value)
    return number is not None and number >= 1


def is_object_id(value, payload):
    return isinstance(value, str) and ObjectId.is_valid(value)


RESERVATION_RULES = [
    Rule('userId', optional_string, 'User ID must be a string'),
    Rule('name', is_string, 'Name must be a string'),
    Rule('name', trimmed_length(2, 50), 'Name must be between 2 and 50 characters'),
    Rule('name', required_trimmed, 'Name is required'),
    Rule('email', is_email, 'Enter a valid email address'),
    Rule('email', required, 'Email is required'),
    Rule('postalCode', matches(POSTAL_CODE_RE), 'Postal code must look like "123-4567"'),
    Rule('postalCode', required, 'Postal code is required'),
    Rule('address', is_string, 'Address must be a string'),
    Rule('address', trimmed_length(5, 100), 'Address must be between 5 and 100 characters'),
    Rule('address', required_trimmed, 'Address is required'),
    Rule('phone', matches(PHONE_RE), 'Phone number must be 10 or 11 digits'),
    Rule('phone', required, 'Phone number is required'),
    Rule('roomType', is_string, 'Room type must be a string'),
    Rule('roomType', required, 'Room type is required'),
    Rule('checkIn', is_iso_date, 'Check-in must be a valid date (YYYY-MM-DD)'),
    Rule('checkIn', required, 'Check-in is required'),
    Rule('checkOut', is_iso_date, 'Check-out must be a valid date (YYYY-MM-DD)'),
    Rule('checkOut', required, 'Check-out is required'),
    Rule('checkOut', after_field('checkIn'), 'Check-out must be later than check-in'),
    Rule('nights', positive_int, 'Nights must be an integer of 1 or more'),
    Rule('nights', required, 'Nights is required'),
    Rule('guests', positive_int, 'Guests must be an integer of 1 or more'),
    Rule('guests', required, 'Guests is required'),
    Rule('roomId', is_object_id, 'Room ID must be a valid ObjectId'),
    Rule('roomId', required, 'Room ID is required'),
]


def collect_errors(payload, rules=RESERVATION_RULES):
    """Return ``[{'field', 'message'}, ...]`` for every broken rule, in table order."""
    if not isinstance(payload, Mapping):
        payload = {}
    return [
        {'field': rule.field, 'message': rule.message}
        for rule in rules
        if not rule.check(payload.get(rule.field), payload)
    ]


def clean(payload):
    """Typed values of a payload that passed ``collect_errors``."""
    cleaned = {
        'name': payload['name'].strip(),
        'email': payload['email'],
        'postalCode': payload['postalCode'],
        'address': payload['address'].strip(),
        'phone': payload['phone'],
        'roomType': payload['roomType'],
        'checkIn': parse_date(payload['checkIn']),
        'checkOut': parse_date(payload['checkOut']),
        'nights': parse_int(payload['nights']),
        'guests': parse_int(payload['guests']),
        'roomId': payload['roomId'],
    }
    if payload.get('userId') is not None:
        cleaned['userId'] = payload['userId']
    return cleaned
