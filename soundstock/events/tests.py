"""
Test suite for events: CRUD, stock reservation, bulk delete and reports
"""
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from soundstock.core.models import AuditLog
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from soundstock.events.models import Event, EquipmentEvent
from soundstock.inventory.stock import StockError, reserve_equipment, release_event_equipment
from soundstock.notifications.models import Notification


def future(days=10):
    return (timezone.now() + timedelta(days=days)).isoformat()


class StockBookkeepingTests(TestCase):
    """Test the reserve/release helpers directly"""

    def setUp(self):
        self.speaker = TestDataFactory.create_equipment(name='Speaker', stock=5)
        self.mic = TestDataFactory.create_equipment(name='Mic', stock=2)
        self.event = TestDataFactory.create_event()

    def test_reserve_decrements_stock(self):
        reservations = reserve_equipment(self.event, [
            {'equipment_id': self.speaker.id, 'quantity': 3},
            {'equipment_id': self.mic.id, 'quantity': 2},
        ])
        self.assertEqual(len(reservations), 2)
        self.speaker.refresh_from_db()
        self.mic.refresh_from_db()
        self.assertEqual(self.speaker.stock, 2)
        self.assertEqual(self.mic.stock, 0)
        self.assertTrue(AuditLog.objects.filter(action='stock_reserve', object_id=str(self.event.id)).exists())

    def test_reserve_insufficient_stock_raises(self):
        with self.assertRaises(StockError) as ctx:
            reserve_equipment(self.event, [{'equipment_id': self.mic.id, 'quantity': 3}])
        self.assertIn('Insufficient stock for Mic', str(ctx.exception))
        self.assertEqual(ctx.exception.equipment_id, self.mic.id)

    def test_reserve_missing_equipment_raises(self):
        with self.assertRaises(StockError):
            reserve_equipment(self.event, [{'equipment_id': 99999, 'quantity': 1}])

    def test_release_restores_stock(self):
        reserve_equipment(self.event, [{'equipment_id': self.speaker.id, 'quantity': 4}])
        released = release_event_equipment(self.event)
        self.assertEqual(released, 4)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)
        self.assertEqual(EquipmentEvent.objects.filter(event=self.event).count(), 0)

    def test_release_without_reservations(self):
        self.assertEqual(release_event_equipment(self.event), 0)


class EventAPITests(TestCase):
    """Test Event API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.colleague = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.speaker = TestDataFactory.create_equipment(name='Main Speaker', category='Speaker', stock=5)
        self.mixer = TestDataFactory.create_equipment(name='FoH Mixer', category='Mixer', stock=2)

    def _create_event(self, equipments=None, **overrides):
        data = {
            'title': 'City Concert',
            'description': 'Outdoor concert',
            'date': future(),
            'location': 'Central Park',
        }
        data.update(overrides)
        if equipments is not None:
            data['equipments'] = equipments
        return self.client.post('/api/v1/events/', data, format='json')

    def test_create_event_reserves_stock(self):
        response = self._create_event([
            {'equipment_id': self.speaker.id, 'quantity': 2},
            {'equipment_id': self.mixer.id, 'quantity': 1},
        ])
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'upcoming')
        self.assertEqual(response.data['total_items'], 3)
        self.assertEqual(len(response.data['equipment_events']), 2)
        self.assertNotIn('equipments', response.data)

        self.speaker.refresh_from_db()
        self.mixer.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)
        self.assertEqual(self.mixer.stock, 1)

    def test_create_event_notifies_all_users(self):
        response = self._create_event()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        for user in (self.user, self.colleague):
            self.assertTrue(Notification.objects.filter(user=user, type='event', title='New event').exists())

    def test_create_event_insufficient_stock_rolls_back(self):
        response = self._create_event([
            {'equipment_id': self.speaker.id, 'quantity': 2},
            {'equipment_id': self.mixer.id, 'quantity': 3},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('equipments', response.data)
        self.assertEqual(Event.objects.count(), 0)
        self.assertEqual(EquipmentEvent.objects.count(), 0)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_create_event_unknown_equipment(self):
        response = self._create_event([{'equipment_id': 99999, 'quantity': 1}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Event.objects.count(), 0)

    def test_create_event_duplicate_equipment_rejected(self):
        response = self._create_event([
            {'equipment_id': self.speaker.id, 'quantity': 1},
            {'equipment_id': self.speaker.id, 'quantity': 1},
        ])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('equipments', response.data)

    def test_create_event_zero_quantity_rejected(self):
        response = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_event_missing_fields(self):
        response = self.client.post('/api/v1/events/', {'title': 'No date'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('date', response.data)
        self.assertIn('location', response.data)

    def test_reservation_emptying_stock_notifies(self):
        self._create_event([{'equipment_id': self.mixer.id, 'quantity': 2}])
        self.assertTrue(Notification.objects.filter(
            user=self.user, title='Equipment out of stock', type='warning',
        ).exists())

    def test_update_replaces_reservations(self):
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 4}])
        event_id = created.data['id']

        response = self.client.patch(f'/api/v1/events/{event_id}/', {
            'equipments': [
                {'equipment_id': self.speaker.id, 'quantity': 1},
                {'equipment_id': self.mixer.id, 'quantity': 2},
            ],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_items'], 3)
        self.speaker.refresh_from_db()
        self.mixer.refresh_from_db()
        self.assertEqual(self.speaker.stock, 4)
        self.assertEqual(self.mixer.stock, 0)

    def test_update_can_reuse_released_units(self):
        """Units released from the old list are available to the new one"""
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 5}])
        response = self.client.patch(f"/api/v1/events/{created.data['id']}/", {
            'equipments': [{'equipment_id': self.speaker.id, 'quantity': 5}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 0)

    def test_update_without_equipments_keeps_reservations(self):
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 2}])
        response = self.client.patch(f"/api/v1/events/{created.data['id']}/", {
            'status': 'ongoing',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ongoing')
        self.assertEqual(response.data['total_items'], 2)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)

    def test_update_with_empty_list_releases_all(self):
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 2}])
        response = self.client.patch(f"/api/v1/events/{created.data['id']}/", {
            'equipments': [],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['equipment_events'], [])
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_failed_update_rolls_back(self):
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 2}])
        event_id = created.data['id']
        response = self.client.patch(f'/api/v1/events/{event_id}/', {
            'title': 'Renamed',
            'equipments': [{'equipment_id': self.mixer.id, 'quantity': 5}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        event = Event.objects.get(pk=event_id)
        self.assertEqual(event.title, 'City Concert')
        self.assertEqual(event.equipment_events.get().equipment_id, self.speaker.id)
        self.speaker.refresh_from_db()
        self.mixer.refresh_from_db()
        self.assertEqual(self.speaker.stock, 3)
        self.assertEqual(self.mixer.stock, 2)

    def test_put_requires_core_fields(self):
        created = self._create_event()
        response = self.client.put(f"/api/v1/events/{created.data['id']}/", {'title': 'Only title'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_status_rejected(self):
        response = self._create_event(status='cancelled')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('status', response.data)

    def test_delete_event_restores_stock(self):
        created = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 3}])
        response = self.client.delete(f"/api/v1/events/{created.data['id']}/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)
        self.assertEqual(Event.objects.count(), 0)

    def test_bulk_delete_restores_stock(self):
        first = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 2}])
        second = self._create_event([{'equipment_id': self.speaker.id, 'quantity': 1}], title='Seminar')
        keep = self._create_event(title='Keep me')

        response = self.client.delete(f"/api/v1/events/?ids={first.data['id']},{second.data['id']}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted'], 2)
        self.assertEqual(list(Event.objects.values_list('id', flat=True)), [keep.data['id']])
        self.speaker.refresh_from_db()
        self.assertEqual(self.speaker.stock, 5)

    def test_bulk_delete_requires_ids(self):
        response = self.client.delete('/api/v1/events/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete('/api/v1/events/?ids=1,abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        TestDataFactory.create_event(title='Jazz Night', location='Blue Note', description='Live jazz')
        TestDataFactory.create_event(title='Wedding', location='Grand Ballroom', status='completed',
                                     description='Reception with DJ')
        TestDataFactory.create_event(title='Seminar', location='Hall B', status='ongoing')

        response = self.client.get('/api/v1/events/', {'search': 'jazz'})
        self.assertEqual([e['title'] for e in response.data], ['Jazz Night'])

        response = self.client.get('/api/v1/events/', {'search': 'dj'})
        self.assertEqual([e['title'] for e in response.data], ['Wedding'])

        response = self.client.get('/api/v1/events/', {'location': 'ballroom'})
        self.assertEqual([e['title'] for e in response.data], ['Wedding'])

        response = self.client.get('/api/v1/events/', {'status': 'ongoing'})
        self.assertEqual([e['title'] for e in response.data], ['Seminar'])

    def test_list_latest_date_first(self):
        soon = TestDataFactory.create_event(title='Soon', days_ahead=1)
        later = TestDataFactory.create_event(title='Later', days_ahead=30)
        response = self.client.get('/api/v1/events/')
        ids = [e['id'] for e in response.data]
        self.assertLess(ids.index(later.id), ids.index(soon.id))

    def test_detail_404(self):
        response = self.client.get('/api/v1/events/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class EventReportTests(TestCase):
    """Test the event report endpoint"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.event = TestDataFactory.create_event(title='Festival', location='Beach')
        speaker = TestDataFactory.create_equipment(name='Speaker', category='Speaker', stock=10)
        mic = TestDataFactory.create_equipment(name='Mic', category='Microphone', stock=10)
        TestDataFactory.create_reservation(self.event, speaker, quantity=4)
        TestDataFactory.create_reservation(self.event, mic, quantity=2)

    def test_generate_report(self):
        response = self.client.post(f'/api/v1/events/{self.event.id}/report/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['event']['title'], 'Festival')
        self.assertEqual(response.data['total_items'], 6)
        self.assertEqual([line['name'] for line in response.data['equipment']], ['Mic', 'Speaker'])

        self.event.refresh_from_db()
        self.assertTrue(self.event.report_generated)
        self.assertTrue(AuditLog.objects.filter(action='report_generate', object_id=str(self.event.id)).exists())

    def test_report_does_not_touch_stock(self):
        self.client.post(f'/api/v1/events/{self.event.id}/report/')
        self.assertEqual(self.event.equipment_events.count(), 2)

    def test_report_404(self):
        response = self.client.post('/api/v1/events/99999/report/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
