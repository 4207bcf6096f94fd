from django.apps import apps
from django.core import mail
from django.core.management import call_command
from django.test import SimpleTestCase, override_settings
from rest_framework.test import APISimpleTestCase
from rest_framework import status
from datetime import date, datetime, timezone as dt_timezone
from io import StringIO
from smtplib import SMTPAuthenticationError
from unittest import mock

import mongomock
from bson import Decimal128, ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from .exceptions import InvalidReservation, ReservationNotFound, RoomNotFound, RoomReferenceError
from .notifications import build_confirmation, send_confirmation, total_price
from .services import ReservationService
from .startup import check_mail_transport, check_store
from .store import MongoStore
from .validation import clean, collect_errors


def reservation_payload(room_id, **overrides):
    payload = {
        'name': 'Taro Yamada',
        'email': 'taro@example.jp',
        'postalCode': '123-4567',
        'address': '1-2-3 Aizuwakamatsu',
        'phone': '09012345678',
        'roomType': 'standard',
        'checkIn': '2025-05-01',
        'checkOut': '2025-05-03',
        'nights': 2,
        'guests': 2,
        'roomId': str(room_id),
    }
    payload.update(overrides)
    return payload


def error_fields(errors):
    return [error['field'] for error in errors]


class MongoStoreMixin:
    """Swap the app's store for an in-memory mongomock database"""

    def setUp(self):
        super().setUp()
        self.store = MongoStore(mongomock.MongoClient(), 'aizu_inn_test')
        config = apps.get_app_config('inn_reservation')
        previous = config.store
        config.store = self.store
        self.addCleanup(setattr, config, 'store', previous)
        self.addCleanup(self.store.client.drop_database, 'aizu_inn_test')

        self.room_id = self.store.rooms.insert_one({
            'name': 'Standard Room',
            'price': 10000,
            'image': 'a.jpg',
        }).inserted_id

    def use_broken_store(self):
        broken = mock.Mock()
        failure = ServerSelectionTimeoutError('No servers available')
        broken.rooms.find.side_effect = failure
        broken.rooms.find_one.side_effect = failure
        broken.reservations.find_one.side_effect = failure
        apps.get_app_config('inn_reservation').store = broken
        return broken


class ReservationValidationTestCase(SimpleTestCase):
    """Test the per-field reservation rules"""

    def setUp(self):
        self.room_id = ObjectId()

    def test_valid_payload_has_no_errors(self):
        """A payload meeting every rule produces an empty error list"""
        self.assertEqual(collect_errors(reservation_payload(self.room_id)), [])

    def test_every_broken_rule_is_reported(self):
        """A missing name breaks all three of its rules, each reported once"""
        payload = reservation_payload(self.room_id)
        del payload['name']

        errors = collect_errors(payload)

        self.assertEqual(error_fields(errors), ['name', 'name', 'name'])
        self.assertEqual(errors[2]['message'], 'Name is required')

    def test_each_required_field_is_named_when_missing(self):
        """Dropping any required field yields a descriptor naming that field"""
        for field in ['name', 'email', 'postalCode', 'address', 'phone', 'roomType',
                      'checkIn', 'checkOut', 'nights', 'guests', 'roomId']:
            with self.subTest(field=field):
                payload = reservation_payload(self.room_id)
                del payload[field]
                self.assertIn(field, error_fields(collect_errors(payload)))

    def test_format_rules(self):
        """Values in the wrong shape are rejected on their own field"""
        bad_values = [
            ('email', 'not-an-email'),
            ('postalCode', '1234567'),
            ('postalCode', '123-456'),
            ('phone', '090-1234-5678'),
            ('phone', '123456789'),
            ('name', 'T'),
            ('name', 'x' * 51),
            ('address', '1-2'),
            ('checkIn', '2025/05/01'),
            ('checkIn', '2025-02-30'),
            ('nights', 0),
            ('nights', 1.5),
            ('guests', True),
            ('guests', 'two'),
            ('roomId', 'not-an-object-id'),
            ('userId', 42),
        ]
        for field, value in bad_values:
            with self.subTest(field=field, value=value):
                payload = reservation_payload(self.room_id, **{field: value})
                self.assertIn(field, error_fields(collect_errors(payload)))

    def test_name_length_counts_trimmed_text(self):
        """Surrounding whitespace does not count towards the name length"""
        payload = reservation_payload(self.room_id, name='  T  ')
        self.assertEqual(error_fields(collect_errors(payload)), ['name'])

    def test_check_out_must_follow_check_in(self):
        """Same-day or earlier check-out is a check-out error"""
        for check_out in ['2025-05-01', '2025-04-30']:
            with self.subTest(check_out=check_out):
                errors = collect_errors(reservation_payload(self.room_id, checkOut=check_out))
                self.assertEqual(errors, [{
                    'field': 'checkOut',
                    'message': 'Check-out must be later than check-in',
                }])

    def test_check_out_order_rule_skipped_for_unparseable_check_in(self):
        """A bad check-in date is reported only as a check-in error"""
        errors = collect_errors(reservation_payload(self.room_id, checkIn='someday'))
        self.assertEqual(error_fields(errors), ['checkIn'])

    def test_optional_user_id(self):
        """userId may be omitted or null"""
        self.assertEqual(collect_errors(reservation_payload(self.room_id, userId=None)), [])
        self.assertEqual(collect_errors(reservation_payload(self.room_id, userId='u-1')), [])

    def test_non_mapping_payload(self):
        """A payload that is not an object fails every required field"""
        fields = set(error_fields(collect_errors(['not', 'an', 'object'])))
        self.assertIn('name', fields)
        self.assertIn('roomId', fields)
        self.assertNotIn('userId', fields)

    def test_clean_returns_typed_values(self):
        """Cleaning trims text, parses dates and coerces numeric strings"""
        payload = reservation_payload(
            self.room_id, name='  Taro Yamada ', nights='2', guests='3', userId='u-1',
        )
        cleaned = clean(payload)

        self.assertEqual(cleaned['name'], 'Taro Yamada')
        self.assertEqual(cleaned['checkIn'], date(2025, 5, 1))
        self.assertEqual(cleaned['checkOut'], date(2025, 5, 3))
        self.assertEqual(cleaned['nights'], 2)
        self.assertEqual(cleaned['guests'], 3)
        self.assertEqual(cleaned['userId'], 'u-1')

    def test_nights_and_guests_independent_of_dates(self):
        """nights is not cross-checked against the stay length"""
        payload = reservation_payload(self.room_id, nights=7)
        self.assertEqual(collect_errors(payload), [])

    def test_integers_beyond_bson_range_rejected(self):
        """Counts too large for a 64-bit BSON int fail on their own field"""
        huge = '99999999999999999999'
        self.assertEqual(error_fields(collect_errors(reservation_payload(self.room_id, nights=huge))),
                         ['nights'])
        self.assertEqual(error_fields(collect_errors(reservation_payload(self.room_id, guests=2 ** 63))),
                         ['guests'])
        self.assertEqual(collect_errors(reservation_payload(self.room_id, guests=2 ** 63 - 1)), [])

    def test_non_string_name_reports_type_only(self):
        """A number as name is a type error; its text form still counts as present"""
        errors = collect_errors(reservation_payload(self.room_id, name=42))
        self.assertEqual(errors, [{'field': 'name', 'message': 'Name must be a string'}])


class ReservationServiceTestCase(MongoStoreMixin, SimpleTestCase):
    """Test the creation workflow and lookups without HTTP"""

    def setUp(self):
        super().setUp()
        self.notifier = mock.Mock(return_value=True)
        self.now = datetime(2025, 4, 1, 9, 30, tzinfo=dt_timezone.utc)
        self.service = ReservationService(self.store, notifier=self.notifier, clock=lambda: self.now)

    def test_create_reservation_builds_document(self):
        """Validated fields are copied and the room is snapshotted"""
        reservation = self.service.create_reservation(reservation_payload(self.room_id))

        self.assertIsInstance(reservation['_id'], ObjectId)
        self.assertEqual(reservation['userId'], 'guest')
        self.assertEqual(reservation['status'], 'confirmed')
        self.assertEqual(reservation['createdAt'], self.now)
        self.assertEqual(reservation['roomId'], self.room_id)
        self.assertEqual(reservation['checkIn'], datetime(2025, 5, 1))
        self.assertEqual(reservation['roomDetails'], {
            'price': 10000, 'image': 'a.jpg', 'name': 'Standard Room',
        })
        self.assertEqual(total_price(reservation), 40000)

        stored = self.store.reservations.find_one({'_id': reservation['_id']})
        self.assertEqual(stored['name'], 'Taro Yamada')
        self.assertNotIn('totalPrice', stored)

    def test_given_user_id_is_kept(self):
        """A supplied userId replaces the guest default"""
        reservation = self.service.create_reservation(
            reservation_payload(self.room_id, userId='user-7')
        )
        self.assertEqual(reservation['userId'], 'user-7')

    def test_notifier_receives_created_reservation(self):
        """The confirmation is dispatched once with the stored document"""
        reservation = self.service.create_reservation(reservation_payload(self.room_id))
        self.notifier.assert_called_once_with(reservation)

    def test_invalid_payload_stops_before_store(self):
        """Validation failures carry the descriptors and write nothing"""
        with self.assertRaises(InvalidReservation) as ctx:
            self.service.create_reservation(reservation_payload(self.room_id, checkOut='2025-04-30'))

        self.assertEqual(error_fields(ctx.exception.errors), ['checkOut'])
        self.assertEqual(self.store.reservations.count_documents({}), 0)
        self.notifier.assert_not_called()

    def test_unknown_room_is_reference_error(self):
        """A well-formed roomId without a room is not a validation failure"""
        with self.assertRaises(RoomReferenceError):
            self.service.create_reservation(reservation_payload(ObjectId()))
        self.assertEqual(self.store.reservations.count_documents({}), 0)

    def test_notifier_exception_does_not_fail_creation(self):
        """Even a notifier that raises leaves the reservation in place"""
        self.service.notifier = mock.Mock(side_effect=RuntimeError('mail server on fire'))

        with self.assertLogs('inn_reservation.services', level='ERROR'):
            reservation = self.service.create_reservation(reservation_payload(self.room_id))

        self.assertEqual(self.store.reservations.count_documents({'_id': reservation['_id']}), 1)

    def test_find_room(self):
        """Lookups return the room or None, malformed ids never reach the store"""
        self.assertEqual(self.service.find_room(str(self.room_id))['name'], 'Standard Room')
        self.assertIsNone(self.service.find_room(str(ObjectId())))
        self.assertIsNone(self.service.find_room('bogus'))

    def test_list_rooms_in_insertion_order(self):
        """Rooms come back in the order they were added"""
        self.store.rooms.insert_one({'name': 'Deluxe Room', 'price': 15000, 'image': 'b.jpg'})
        names = [room['name'] for room in self.service.list_rooms()]
        self.assertEqual(names, ['Standard Room', 'Deluxe Room'])

    def test_get_reservation_errors(self):
        """Unknown, malformed, and orphaned reservations each fail distinctly"""
        with self.assertRaises(ReservationNotFound):
            self.service.get_reservation(str(ObjectId()))
        with self.assertRaises(ReservationNotFound):
            self.service.get_reservation('bogus')

        reservation = self.service.create_reservation(reservation_payload(self.room_id))
        self.store.rooms.delete_one({'_id': self.room_id})
        with self.assertRaises(RoomNotFound):
            self.service.get_reservation(str(reservation['_id']))


class ReservationApiTestCase(MongoStoreMixin, APISimpleTestCase):
    """Test the reservation endpoints"""

    url = '/api/reservations'

    def test_create_reservation(self):
        """A valid request returns 201 with the stored reservation"""
        payload = reservation_payload(self.room_id)
        response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        body = response.json()
        for field, value in payload.items():
            self.assertEqual(body[field], value, field)
        self.assertEqual(body['status'], 'confirmed')
        self.assertEqual(body['userId'], 'guest')
        self.assertEqual(body['roomDetails'], {'price': 10000, 'image': 'a.jpg', 'name': 'Standard Room'})
        self.assertTrue(body['createdAt'])
        self.assertTrue(body['id'])
        self.assertEqual(body['id'], body['_id'])
        self.assertEqual(self.store.reservations.count_documents({}), 1)

    def test_confirmation_email_sent(self):
        """The guest receives a confirmation with the computed total"""
        response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['taro@example.jp'])
        self.assertIn('¥40,000', message.body)
        self.assertIn(response.json()['id'], message.body)
        self.assertIn('2025/05/01', message.body)

    def test_duplicate_requests_create_separate_reservations(self):
        """No deduplication: identical payloads produce two reservations"""
        payload = reservation_payload(self.room_id)
        first = self.client.post(self.url, payload, format='json')
        second = self.client.post(self.url, payload, format='json')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertNotEqual(first.json()['id'], second.json()['id'])
        self.assertEqual(self.store.reservations.count_documents({}), 2)

    def test_check_out_before_check_in_rejected(self):
        """An inverted stay is a 400 on checkOut and nothing is written"""
        response = self.client.post(
            self.url, reservation_payload(self.room_id, checkOut='2025-04-30'), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(error_fields(response.json()['errors']), ['checkOut'])
        self.assertEqual(self.store.reservations.count_documents({}), 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_missing_fields_rejected(self):
        """An empty body lists every required field"""
        response = self.client.post(self.url, {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        fields = set(error_fields(response.json()['errors']))
        self.assertTrue({'name', 'email', 'checkIn', 'nights', 'roomId'} <= fields)

    def test_unknown_room_rejected(self):
        """A roomId with no room is a 400 naming roomId"""
        response = self.client.post(self.url, reservation_payload(ObjectId()), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['errors'], [{
            'field': 'roomId',
            'message': 'The specified room does not exist',
        }])
        self.assertEqual(self.store.reservations.count_documents({}), 0)

    def test_mail_failure_does_not_change_response(self):
        """A failing SMTP transport still yields the created reservation"""
        failure = SMTPAuthenticationError(535, b'Username and Password not accepted')
        with mock.patch('django.core.mail.EmailMessage.send', side_effect=failure):
            with self.assertLogs('inn_reservation.notifications', level='ERROR'):
                response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['status'], 'confirmed')
        self.assertEqual(self.store.reservations.count_documents({}), 1)

    @override_settings(EMAIL_BACKEND='django.core.mail.backends.dummy.EmailBackend')
    def test_unconfigured_mail_still_succeeds(self):
        """Without mail credentials the reservation is still created"""
        response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(mail.outbox), 0)

    def test_malformed_json_body(self):
        """A body that is not JSON is a structured 400"""
        response = self.client.post(self.url, data='{"name": ', content_type='application/json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.json())

    def test_store_fault_on_create(self):
        """Database errors become a generic 500"""
        self.use_broken_store()
        with self.assertLogs('inn_reservation.exceptions', level='ERROR'):
            response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Failed to create reservation'})

    def test_retrieve_joins_current_room(self):
        """roomDetails on read is the room as it is now, not the snapshot"""
        created = self.client.post(self.url, reservation_payload(self.room_id), format='json').json()

        # Room changes after booking
        self.store.rooms.update_one({'_id': self.room_id}, {'$set': {'price': 12000}})

        response = self.client.get(f"{self.url}/{created['id']}")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body['_id'], created['id'])
        self.assertEqual(body['checkIn'], '2025-05-01')
        self.assertEqual(body['roomDetails']['price'], 12000)
        self.assertEqual(body['roomDetails']['_id'], str(self.room_id))

        # The stored snapshot keeps the booked price
        stored = self.store.reservations.find_one({'_id': ObjectId(created['id'])})
        self.assertEqual(stored['roomDetails']['price'], 10000)

    def test_retrieve_unknown_reservation(self):
        """Unknown and malformed ids are 404"""
        for reservation_id in [str(ObjectId()), 'not-an-id']:
            with self.subTest(reservation_id=reservation_id):
                response = self.client.get(f'{self.url}/{reservation_id}')
                self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
                self.assertEqual(response.json(), {'error': 'Reservation not found'})

    def test_retrieve_with_deleted_room(self):
        """A reservation whose room is gone reports the room as missing"""
        created = self.client.post(self.url, reservation_payload(self.room_id), format='json').json()
        self.store.rooms.delete_one({'_id': self.room_id})

        response = self.client.get(f"{self.url}/{created['id']}")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {'error': 'Room not found'})

    def test_created_at_rendered_as_utc_on_read(self):
        """createdAt reads back in UTC with a Z suffix, like the create response"""
        created = self.client.post(self.url, reservation_payload(self.room_id), format='json').json()
        response = self.client.get(f"{self.url}/{created['id']}")

        self.assertTrue(created['createdAt'].endswith('Z'))
        self.assertTrue(response.json()['createdAt'].endswith('Z'))
        self.assertEqual(response.json()['createdAt'][:19], created['createdAt'][:19])

    def test_decimal_room_price_still_creates(self):
        """A Decimal128 price is snapshotted, rendered and totalled"""
        self.store.rooms.update_one({'_id': self.room_id}, {'$set': {'price': Decimal128('10000')}})

        response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()['roomDetails']['price'], 10000)
        self.assertIn('¥40,000', mail.outbox[0].body)

    def test_unpriced_room_still_creates(self):
        """A room without a usable price only costs the confirmation email"""
        self.store.rooms.update_one({'_id': self.room_id}, {'$set': {'price': None}})

        with self.assertLogs('inn_reservation.notifications', level='ERROR'):
            response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(self.store.reservations.count_documents({}), 1)
        self.assertEqual(len(mail.outbox), 0)

    def test_oversized_nights_rejected(self):
        """A count BSON cannot store is a 400 on that field, nothing written"""
        response = self.client.post(
            self.url, reservation_payload(self.room_id, nights='99999999999999999999'), format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(error_fields(response.json()['errors']), ['nights'])
        self.assertEqual(self.store.reservations.count_documents({}), 0)

    def test_unexpected_error_is_json(self):
        """Errors outside the known taxonomy still come back as a JSON 500"""
        with mock.patch.object(ReservationService, 'create_reservation', side_effect=OverflowError('too big')):
            with self.assertLogs('inn_reservation.exceptions', level='ERROR'):
                response = self.client.post(self.url, reservation_payload(self.room_id), format='json')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Internal server error'})


class RoomApiTestCase(MongoStoreMixin, APISimpleTestCase):
    """Test room listing, welcome, and health endpoints"""

    def test_list_rooms(self):
        """All rooms are listed with string ids"""
        self.store.rooms.insert_one({'name': 'Deluxe Room', 'price': 15000, 'image': 'b.jpg'})

        response = self.client.get('/api/rooms')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rooms = response.json()
        self.assertEqual([room['name'] for room in rooms], ['Standard Room', 'Deluxe Room'])
        self.assertEqual(rooms[0]['_id'], str(self.room_id))

    def test_list_rooms_empty(self):
        """No rooms is an empty list, not an error"""
        self.store.rooms.delete_many({})
        response = self.client.get('/api/rooms')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), [])

    def test_list_rooms_store_fault(self):
        """A database failure is a 500 with a JSON error"""
        self.use_broken_store()
        with self.assertLogs('inn_reservation.exceptions', level='ERROR'):
            response = self.client.get('/api/rooms')

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.json(), {'error': 'Failed to fetch rooms'})

    def test_welcome(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'message': 'Welcome to Aizu Inn Server!'})

    def test_health_check(self):
        """Health reports the database ping"""
        with mock.patch.object(MongoStore, 'ping'):
            response = self.client.get('/health')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'status': 'ok'})

        broken = self.use_broken_store()
        broken.ping.side_effect = ServerSelectionTimeoutError('No servers available')
        response = self.client.get('/health')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)


class NotificationTestCase(SimpleTestCase):
    """Test the confirmation message"""

    def setUp(self):
        self.reservation = {
            '_id': ObjectId(),
            'name': 'Taro Yamada',
            'email': 'taro@example.jp',
            'phone': '09012345678',
            'address': '1-2-3 Aizuwakamatsu',
            'postalCode': '123-4567',
            'roomType': 'standard',
            'checkIn': datetime(2025, 5, 1),
            'checkOut': datetime(2025, 5, 3),
            'nights': 2,
            'guests': 2,
            'roomDetails': {'price': 10000, 'image': 'a.jpg', 'name': 'Standard Room'},
        }

    def test_build_confirmation(self):
        """The message lists the guest, the stay, the total and the number"""
        message = build_confirmation(self.reservation)

        self.assertEqual(message.to, ['taro@example.jp'])
        self.assertEqual(message.subject, 'Thank you for your reservation!')
        for text in ['Taro Yamada', '123-4567', 'standard', '2025/05/03', '¥40,000',
                     str(self.reservation['_id'])]:
            self.assertIn(text, message.body)

    def test_send_confirmation_swallows_errors(self):
        """Transport errors are logged and reported as False"""
        with mock.patch('django.core.mail.EmailMessage.send', side_effect=OSError('network unreachable')):
            with self.assertLogs('inn_reservation.notifications', level='ERROR'):
                self.assertFalse(send_confirmation(self.reservation))

    def test_send_confirmation(self):
        self.assertTrue(send_confirmation(self.reservation))
        self.assertEqual(len(mail.outbox), 1)

    def test_fractional_price_total(self):
        """Float prices with no fraction print like whole yen"""
        self.reservation['roomDetails']['price'] = 9500.0
        self.assertIn('¥38,000', build_confirmation(self.reservation).body)


class StartupTestCase(SimpleTestCase):
    """Test the connection checks run before serving"""

    def test_store_failure_is_fatal(self):
        store = mock.Mock()
        store.ping.side_effect = ServerSelectionTimeoutError('No servers available')

        with self.assertLogs('inn_reservation.startup', level='CRITICAL'):
            with self.assertRaises(SystemExit):
                check_store(store)

    def test_store_success_registers_close(self):
        store = mock.Mock()
        with mock.patch('inn_reservation.startup.atexit.register') as register:
            check_store(store)
        register.assert_called_once_with(store.close)

    def test_mail_transport_check_never_raises(self):
        """Mail check logs failures instead of stopping startup"""
        self.assertTrue(check_mail_transport())

        connection = mock.Mock()
        connection.open.side_effect = OSError('connection refused')
        with mock.patch('inn_reservation.startup.get_connection', return_value=connection):
            with self.assertLogs('inn_reservation.startup', level='ERROR'):
                self.assertFalse(check_mail_transport())


class PopulateDbTestCase(MongoStoreMixin, SimpleTestCase):
    """Test the room seeding command"""

    def test_populate_db_is_idempotent(self):
        self.store.rooms.delete_many({})
        out = StringIO()

        call_command('populate_db', stdout=out)
        call_command('populate_db', stdout=out)

        self.assertEqual(self.store.rooms.count_documents({}), 4)
        self.assertIn('Created room: Standard Room', out.getvalue())
        self.assertIn('Room Standard Room already exists', out.getvalue())
        room = self.store.rooms.find_one({'name': 'Deluxe Room'})
        self.assertEqual(room['price'], 15000)
