"""
Management command to load demo users, equipment and events
"""
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from soundstock.core.cache_signals import suspend_cache_signals
from soundstock.core.cache_utils import invalidate_dashboard_cache
from soundstock.core.models import User
from soundstock.equipment.models import Equipment
from soundstock.events.models import Event
from soundstock.inventory.models import DamagedEquipment
from soundstock.inventory.stock import reserve_equipment
from soundstock.notifications.models import Notification


DEMO_PASSWORD = 'password123'

DEMO_USERS = [
    {'name': 'Alice Admin', 'email': 'alice@example.com', 'whatsapp': '081200000001', 'role': User.ROLE_ADMIN},
    {'name': 'Bob Operator', 'email': 'bob@example.com', 'whatsapp': '081200000002', 'role': User.ROLE_USER},
]

DEMO_EQUIPMENT = [
    ('Main Speaker', 'Speaker', 8),
    ('Monitor Speaker', 'Speaker', 6),
    ('Subwoofer 18"', 'Speaker', 4),
    ('FoH Mixer', 'Mixer', 2),
    ('Wireless Mic', 'Microphone', 10),
    ('Condenser Mic', 'Microphone', 5),
    ('Power Amplifier', 'Amplifier', 4),
    ('XLR Cable 10m', 'Cable', 30),
]


class Command(BaseCommand):
    help = "Loads demo users, equipment and events (with reservations)"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing equipment, events, damage records and notifications first',
        )

    def handle(self, *args, **options):
        clear = options['clear']

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING DEMO DATA"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        with suspend_cache_signals(), transaction.atomic():
            if clear:
                self.stdout.write(self.style.WARNING("Clearing existing inventory data..."))
                Notification.objects.all().delete()
                DamagedEquipment.objects.all().delete()
                Event.objects.all().delete()
                Equipment.objects.all().delete()
                self.stdout.write(self.style.SUCCESS("Inventory data cleared."))

            users_created = 0
            for data in DEMO_USERS:
                if User.objects.filter(email=data['email']).exists():
                    self.stdout.write(f"  User exists, skipped: {data['email']}")
                    continue
                User.objects.create_user(password=DEMO_PASSWORD, **data)
                users_created += 1
                self.stdout.write(self.style.SUCCESS(f"  Created user: {data['email']}"))

            equipment = {}
            for name, category, stock in DEMO_EQUIPMENT:
                item, created = Equipment.objects.get_or_create(
                    name=name, category=category, defaults={'stock': stock},
                )
                equipment[name] = item
                if created:
                    self.stdout.write(self.style.SUCCESS(f"  Created equipment: {name} ({stock})"))

            now = timezone.now()
            events = [
                {
                    'title': 'City Concert',
                    'description': 'Outdoor city concert with live bands',
                    'date': now + timedelta(days=14),
                    'location': 'Central Park',
                    'items': [('Main Speaker', 4), ('FoH Mixer', 1), ('Wireless Mic', 4)],
                },
                {
                    'title': 'Tech Seminar',
                    'description': 'Internal tech seminar for staff',
                    'date': now + timedelta(days=30),
                    'location': 'Conference Hall B',
                    'items': [('Condenser Mic', 2), ('Monitor Speaker', 2)],
                },
            ]
            events_created = 0
            for data in events:
                if Event.objects.filter(title=data['title']).exists():
                    self.stdout.write(f"  Event exists, skipped: {data['title']}")
                    continue
                items = data.pop('items')
                event = Event.objects.create(**data)
                reserve_equipment(event, [
                    {'equipment_id': equipment[name].id, 'quantity': quantity}
                    for name, quantity in items
                ])
                events_created += 1
                self.stdout.write(self.style.SUCCESS(f"  Created event: {event.title}"))

        invalidate_dashboard_cache()

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS(
            f"Done: {users_created} users, {len(equipment)} equipment, {events_created} events"
        ))
        self.stdout.write(self.style.SUCCESS(f"Demo password: {DEMO_PASSWORD}"))
