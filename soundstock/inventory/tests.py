"""
Test suite for the damaged-equipment workflow
"""
from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from soundstock.core.models import AuditLog
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from soundstock.inventory.models import DamagedEquipment
from soundstock.inventory.serializers import DamagedEquipmentUpdateSerializer
from soundstock.notifications.models import Notification


class DamagedEquipmentAPITests(TestCase):
    """Test damage reporting and repair progress"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.speaker = TestDataFactory.create_equipment(name='Main Speaker', stock=5)

    def _report(self, quantity=2, equipment=None, description='Blown tweeter'):
        equipment = equipment or self.speaker
        return self.client.post('/api/v1/damaged-equipments/', {
            'equipment_id': equipment.id,
            'quantity': quantity,
            'description': description,
        }, format='json')

    def test_report_damage_withdraws_stock(self):
        response = self._report(quantity=2)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['repair_status'], 'pending')
        self.assertEqual(response.data['equipment']['stock'], 3)
        self.assertIsNone(response.data['repaired_at'])
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)
        self.assertTrue(AuditLog.objects.filter(action='damage_report').exists())
        self.assertTrue(Notification.objects.filter(user=self.user, title='Damage reported').exists())

    def test_report_more_than_stock_rejected(self):
        response = self._report(quantity=6)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('quantity', response.data)
        self.assertEqual(DamagedEquipment.objects.count(), 0)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_report_unknown_equipment(self):
        response = self.client.post('/api/v1/damaged-equipments/', {
            'equipment_id': 99999, 'quantity': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('equipment_id', response.data)

    def test_report_zero_quantity_rejected(self):
        response = self._report(quantity=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_report_all_units_notifies_out_of_stock(self):
        self._report(quantity=5)
        self.assertTrue(Notification.objects.filter(user=self.user, title='Equipment out of stock').exists())

    def test_status_moves_forward(self):
        record_id = self._report().data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {
            'repair_status': 'in_progress',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['repair_status'], 'in_progress')
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)

    def test_status_cannot_move_back(self):
        record = TestDataFactory.create_damaged(self.speaker, quantity=1, repair_status='in_progress')
        response = self.client.patch(f'/api/v1/damaged-equipments/{record.id}/', {
            'repair_status': 'pending',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('repair_status', response.data)

    def test_complete_restores_stock(self):
        record_id = self._report(quantity=2).data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {
            'repair_status': 'completed',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['repaired_at'])
        self.assertEqual(response.data['equipment']['stock'], 5)
        self.assertTrue(AuditLog.objects.filter(action='repair_complete', object_id=str(record_id)).exists())
        self.assertTrue(Notification.objects.filter(user=self.user, title='Repair completed').exists())

    def test_pending_straight_to_completed(self):
        record_id = self._report(quantity=1).data['id']
        response = self.client.put(f'/api/v1/damaged-equipments/{record_id}/', {
            'repair_status': 'completed', 'quantity': 1, 'description': 'Fixed',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_completed_record_is_locked(self):
        record_id = self._report(quantity=2).data['id']
        self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'repair_status': 'completed'}, format='json')

        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {
            'description': 'Replaced tweeter',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['description'], 'Replaced tweeter')
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_increase_quantity_withdraws_difference(self):
        record_id = self._report(quantity=1).data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'quantity': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 2)

    def test_decrease_quantity_restores_difference(self):
        record_id = self._report(quantity=3).data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 4)

    def test_increase_quantity_beyond_stock_rejected(self):
        record_id = self._report(quantity=2).data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'quantity': 6}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(DamagedEquipment.objects.get(pk=record_id).quantity, 2)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)

    def test_quantity_change_and_completion_together(self):
        record_id = self._report(quantity=2).data['id']
        response = self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {
            'quantity': 3, 'repair_status': 'completed',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_delete_open_record_restores_stock(self):
        record_id = self._report(quantity=2).data['id']
        response = self.client.delete(f'/api/v1/damaged-equipments/{record_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_delete_completed_record_keeps_stock(self):
        record_id = self._report(quantity=2).data['id']
        self.client.patch(f'/api/v1/damaged-equipments/{record_id}/', {'repair_status': 'completed'}, format='json')
        self.client.delete(f'/api/v1/damaged-equipments/{record_id}/')
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_list_filters(self):
        mixer = TestDataFactory.create_equipment(name='Mixer', stock=3)
        TestDataFactory.create_damaged(self.speaker, quantity=1)
        TestDataFactory.create_damaged(mixer, quantity=1, repair_status='in_progress')

        response = self.client.get('/api/v1/damaged-equipments/')
        self.assertEqual(len(response.data), 2)

        response = self.client.get('/api/v1/damaged-equipments/', {'status': 'in_progress'})
        self.assertEqual([r['equipment']['name'] for r in response.data], ['Mixer'])

        response = self.client.get('/api/v1/damaged-equipments/', {'equipment_id': self.speaker.id})
        self.assertEqual([r['equipment']['name'] for r in response.data], ['Main Speaker'])

        response = self.client.get('/api/v1/damaged-equipments/', {'equipment_id': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_404(self):
        response = self.client.get('/api/v1/damaged-equipments/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class DamagedEquipmentStaleCopyTests(TestCase):
    """Two requests holding copies of the same record read before either wrote"""

    def setUp(self):
        self.speaker = TestDataFactory.create_equipment(name='Main Speaker', stock=10)
        self.record = TestDataFactory.create_damaged(self.speaker, quantity=3)

    def _update(self, record, data):
        serializer = DamagedEquipmentUpdateSerializer(record, data=data, partial=True)
        self.assertTrue(serializer.is_valid(), serializer.errors)
        return serializer.save()

    def test_completing_twice_restores_once(self):
        first = DamagedEquipment.objects.get(pk=self.record.pk)
        second = DamagedEquipment.objects.get(pk=self.record.pk)

        self._update(first, {'repair_status': 'completed'})
        self._update(second, {'repair_status': 'completed'})

        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 10)
        self.assertEqual(AuditLog.objects.filter(action='repair_complete').count(), 1)

    def test_quantity_change_on_copy_of_completed_record_rejected(self):
        stale = DamagedEquipment.objects.get(pk=self.record.pk)
        self._update(DamagedEquipment.objects.get(pk=self.record.pk), {'repair_status': 'completed'})

        with self.assertRaises(ValidationError):
            self._update(stale, {'quantity': 1})

        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 10)
        self.assertEqual(DamagedEquipment.objects.get(pk=self.record.pk).quantity, 3)

    def test_status_move_back_on_stale_copy_rejected(self):
        stale = DamagedEquipment.objects.get(pk=self.record.pk)
        self._update(DamagedEquipment.objects.get(pk=self.record.pk), {'repair_status': 'in_progress'})

        with self.assertRaises(ValidationError):
            self._update(stale, {'repair_status': 'pending'})
        self.assertEqual(DamagedEquipment.objects.get(pk=self.record.pk).repair_status, 'in_progress')
