"""
Test suite for equipment CRUD, filtering and image handling
"""
import os
import re
import shutil
import tempfile

from django.db import transaction
from django.test import TestCase, override_settings
from rest_framework import status
from soundstock.core.models import AuditLog
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from soundstock.equipment.models import Equipment
from soundstock.equipment.serializers import EquipmentSerializer
from soundstock.equipment.utils import equipment_image_path
from soundstock.inventory.stock import reserve_equipment

MEDIA_ROOT = tempfile.mkdtemp(prefix='soundstock-test-media-')


class EquipmentImagePathTests(TestCase):

    def test_path_uses_millis_and_dashes(self):
        path = equipment_image_path(None, 'big  main speaker.png')
        self.assertRegex(path, r'^uploads/\d{13}-big-main-speaker\.png$')


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class EquipmentAPITests(TestCase):
    """Test Equipment API endpoints"""

    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/equipments/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_equipment_json(self):
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Main Speaker', 'category': 'Speaker', 'stock': 6,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stock'], 6)
        self.assertIsNone(response.data['image_url'])

    def test_stock_defaults_to_one(self):
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Mixer', 'category': 'Mixer',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['stock'], 1)

    def test_negative_stock_rejected(self):
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Mixer', 'category': 'Mixer', 'stock': -1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('stock', response.data)

    def test_name_and_category_required(self):
        response = self.client.post('/api/v1/equipments/', {'name': '   ', 'stock': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)
        self.assertIn('category', response.data)

    def test_create_with_image(self):
        image = TestDataFactory.create_image_file(name='my speaker.png')
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'stock': '2', 'image': image,
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        equipment = Equipment.objects.get(pk=response.data['id'])
        self.assertTrue(re.match(r'^uploads/\d+-my-speaker\.png$', equipment.image.name))
        self.assertTrue(os.path.exists(equipment.image.path))
        self.assertIn('/media/uploads/', response.data['image_url'])

    def test_unsupported_image_type_rejected(self):
        image = TestDataFactory.create_image_file(name='anim.gif', fmt='GIF', content_type='image/gif')
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'image': image,
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('image', response.data)
        self.assertEqual(Equipment.objects.count(), 0)

    @override_settings(EQUIPMENT_IMAGE_MAX_SIZE=50)
    def test_oversized_image_rejected(self):
        image = TestDataFactory.create_image_file(size=(300, 300))
        response = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'image': image,
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('image', response.data)

    def test_list_search_and_category(self):
        TestDataFactory.create_equipment(name='Shure SM58', category='Microphone')
        TestDataFactory.create_equipment(name='JBL PRX', category='Speaker')
        TestDataFactory.create_equipment(name='Behringer X32', category='Mixer')

        response = self.client.get('/api/v1/equipments/', {'search': 'sm58'})
        self.assertEqual([item['name'] for item in response.data], ['Shure SM58'])

        response = self.client.get('/api/v1/equipments/', {'search': 'speak'})
        self.assertEqual([item['name'] for item in response.data], ['JBL PRX'])

        response = self.client.get('/api/v1/equipments/', {'category': 'Mixer'})
        self.assertEqual([item['name'] for item in response.data], ['Behringer X32'])

    def test_list_newest_first(self):
        first = TestDataFactory.create_equipment(name='First')
        second = TestDataFactory.create_equipment(name='Second')
        response = self.client.get('/api/v1/equipments/')
        ids = [item['id'] for item in response.data]
        self.assertLess(ids.index(second.id), ids.index(first.id))

    def test_get_detail_and_404(self):
        equipment = TestDataFactory.create_equipment(name='Amp')
        response = self.client.get(f'/api/v1/equipments/{equipment.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Amp')
        response = self.client.get('/api/v1/equipments/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_put_without_stock_keeps_stock(self):
        equipment = TestDataFactory.create_equipment(name='Amp', stock=7)
        response = self.client.put(f'/api/v1/equipments/{equipment.id}/', {
            'name': 'Amp 2', 'category': 'Amplifier',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        equipment.refresh_from_db()
        self.assertEqual(equipment.name, 'Amp 2')
        self.assertEqual(equipment.stock, 7)

    def test_patch_stock(self):
        equipment = TestDataFactory.create_equipment(stock=7)
        response = self.client.patch(f'/api/v1/equipments/{equipment.id}/', {'stock': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        equipment.refresh_from_db()
        self.assertEqual(equipment.stock, 3)

    def test_name_only_update_keeps_reserved_stock(self):
        equipment = TestDataFactory.create_equipment(name='Main Speaker', stock=10)
        stale = Equipment.objects.get(pk=equipment.pk)
        event = TestDataFactory.create_event()
        with transaction.atomic():
            reserve_equipment(event, [{'equipment_id': equipment.id, 'quantity': 4}])

        serializer = EquipmentSerializer(stale, data={'name': 'Main Speaker L'}, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        serializer.save()

        equipment.refresh_from_db()
        self.assertEqual(equipment.name, 'Main Speaker L')
        self.assertEqual(equipment.stock, 6)

    def test_patch_name_does_not_audit_stock(self):
        equipment = TestDataFactory.create_equipment(name='Amp', stock=5)
        Equipment.objects.filter(pk=equipment.pk).update(stock=3)
        response = self.client.patch(f'/api/v1/equipments/{equipment.id}/', {'name': 'Amp B'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 3)
        log = AuditLog.objects.get(model_name='Equipment', action='update')
        self.assertEqual(log.changes, {'name': {'old': 'Amp', 'new': 'Amp B'}})

    def test_replace_image_deletes_old_file(self):
        created = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'image': TestDataFactory.create_image_file(name='old.png'),
        }, format='multipart')
        equipment = Equipment.objects.get(pk=created.data['id'])
        old_path = equipment.image.path

        response = self.client.patch(f'/api/v1/equipments/{equipment.id}/', {
            'image': TestDataFactory.create_image_file(name='new.jpg', fmt='JPEG', content_type='image/jpeg'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        equipment.refresh_from_db()
        self.assertTrue(equipment.image.name.endswith('-new.jpg'))
        self.assertTrue(os.path.exists(equipment.image.path))
        self.assertFalse(os.path.exists(old_path))

    def test_delete_image_flag(self):
        created = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'image': TestDataFactory.create_image_file(),
        }, format='multipart')
        equipment = Equipment.objects.get(pk=created.data['id'])
        old_path = equipment.image.path

        response = self.client.patch(f'/api/v1/equipments/{equipment.id}/', {'delete_image': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['image_url'])
        equipment.refresh_from_db()
        self.assertFalse(equipment.image)
        self.assertFalse(os.path.exists(old_path))

    def test_delete_equipment_removes_file_and_reservations(self):
        created = self.client.post('/api/v1/equipments/', {
            'name': 'Speaker', 'category': 'Speaker', 'stock': 5, 'image': TestDataFactory.create_image_file(),
        }, format='multipart')
        equipment = Equipment.objects.get(pk=created.data['id'])
        path = equipment.image.path
        event = TestDataFactory.create_event()
        TestDataFactory.create_reservation(event, equipment, quantity=2)
        TestDataFactory.create_damaged(equipment, quantity=1)

        response = self.client.delete(f'/api/v1/equipments/{equipment.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Equipment.objects.filter(pk=equipment.id).exists())
        self.assertFalse(os.path.exists(path))
        self.assertEqual(event.equipment_events.count(), 0)
