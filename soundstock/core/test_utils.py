"""
Test utilities and factories for creating test data
"""
from datetime import timedelta
import io
import random
import string

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone
from PIL import Image
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from soundstock.equipment.models import Equipment
from soundstock.events.models import Event, EquipmentEvent
from soundstock.inventory.models import DamagedEquipment
from soundstock.notifications.models import Notification

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_whatsapp():
        return f'08{random.randint(1000000000, 9999999999)}'

    @staticmethod
    def create_user(email=None, password='testpass123', name=None, whatsapp=None, role='user', is_active=True):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            name=name or f'User {TestDataFactory.random_string(4)}',
            whatsapp=whatsapp or TestDataFactory.random_whatsapp(),
            role=role,
            is_active=is_active,
        )

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('role', User.ROLE_ADMIN)
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_equipment(name=None, category='Speaker', stock=10):
        """Create a test equipment item"""
        if not name:
            name = f'Equipment_{TestDataFactory.random_string(6)}'
        return Equipment.objects.create(name=name, category=category, stock=stock)

    @staticmethod
    def create_event(title=None, days_ahead=7, location='Main Hall', status='upcoming', description=None):
        """Create a test event without reservations"""
        if not title:
            title = f'Event_{TestDataFactory.random_string(6)}'
        return Event.objects.create(
            title=title,
            description=description or f'Test event {title}',
            date=timezone.now() + timedelta(days=days_ahead),
            location=location,
            status=status,
        )

    @staticmethod
    def create_reservation(event, equipment, quantity=1):
        """Create a reservation row and take the units out of stock"""
        reservation = EquipmentEvent.objects.create(event=event, equipment=equipment, quantity=quantity)
        equipment.stock -= quantity
        equipment.save(update_fields=['stock'])
        return reservation

    @staticmethod
    def create_damaged(equipment, quantity=1, repair_status='pending', description='Broken cone'):
        """Create an open damage record and take the units out of stock"""
        record = DamagedEquipment.objects.create(
            equipment=equipment,
            quantity=quantity,
            repair_status=repair_status,
            description=description,
        )
        if record.is_open:
            equipment.stock -= quantity
            equipment.save(update_fields=['stock'])
        return record

    @staticmethod
    def create_notification(user, title='Test notification', message='Something happened', is_read=False):
        return Notification.objects.create(user=user, title=title, message=message, is_read=is_read)

    @staticmethod
    def create_image_file(name='speaker.png', fmt='PNG', content_type='image/png', size=(10, 10)):
        """In-memory image upload generated with Pillow"""
        buffer = io.BytesIO()
        Image.new('RGB', size, color=(200, 30, 30)).save(buffer, format=fmt)
        return SimpleUploadedFile(name, buffer.getvalue(), content_type=content_type)


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
