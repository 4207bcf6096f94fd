from django.core.management.base import BaseCommand
from inn_reservation.store import get_store


ROOMS_DATA = [
    {
        'name': 'Standard Room',
        'price': 10000,  # yen per night per guest
        'image': 'standard.jpg',
        'capacity': 2,
        'description': 'Comfortable room with a view of the castle town'
    },
    {
        'name': 'Japanese-style Room',
        'price': 12000,
        'image': 'washitsu.jpg',
        'capacity': 4,
        'description': 'Tatami room with futon bedding'
    },
    {
        'name': 'Deluxe Room',
        'price': 15000,
        'image': 'deluxe.jpg',
        'capacity': 3,
        'description': 'Spacious room with a private bath'
    },
    {
        'name': 'Family Suite',
        'price': 18000,
        'image': 'family.jpg',
        'capacity': 6,
        'description': 'Two connected rooms for larger groups'
    },
]


class Command(BaseCommand):
    help = 'Populate the rooms collection with sample inn rooms'

    def handle(self, *args, **options):
        rooms = get_store().rooms

        for room_data in ROOMS_DATA:
            result = rooms.update_one(
                {'name': room_data['name']},
                {'$setOnInsert': {key: value for key, value in room_data.items() if key != 'name'}},
                upsert=True,
            )

            if result.upserted_id is not None:
                self.stdout.write(f"Created room: {room_data['name']} - ¥{room_data['price']:,}")
            else:
                self.stdout.write(f"Room {room_data['name']} already exists")

        self.stdout.write(
            self.style.SUCCESS('Successfully populated database with sample rooms')
        )
