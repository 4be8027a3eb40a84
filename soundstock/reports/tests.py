"""
Tests for the dashboard summary and its cache invalidation
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class DashboardSummaryTests(TestCase):
    """Test dashboard summary endpoint"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_summary_counts(self):
        speaker = TestDataFactory.create_equipment(name='Speaker', stock=10)
        TestDataFactory.create_equipment(name='Mixer', stock=2)
        TestDataFactory.create_equipment(name='DI Box', stock=1)
        TestDataFactory.create_equipment(name='Sub', stock=0)
        TestDataFactory.create_damaged(speaker, quantity=2)
        TestDataFactory.create_damaged(speaker, quantity=1, repair_status='completed')
        TestDataFactory.create_event(title='Next week', days_ahead=7)
        TestDataFactory.create_event(title='Last week', days_ahead=-7)
        TestDataFactory.create_notification(self.user)

        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['total_equipment'], 4)
        # 10 - 2 open damage + 2 + 1 + 0
        self.assertEqual(data['total_stock'], 11)
        self.assertEqual(data['low_stock_items'], 2)
        self.assertEqual(data['out_of_stock_items'], 1)
        self.assertEqual(data['damaged_units'], 2)
        self.assertEqual(data['pending_repairs'], 1)
        self.assertEqual(data['total_events'], 2)
        self.assertEqual(data['upcoming_events'], 1)
        self.assertEqual(data['past_events'], 1)
        self.assertEqual([e['title'] for e in data['next_events']], ['Next week'])
        self.assertEqual(len(data['recent_equipment']), 4)
        self.assertEqual(data['unread_notifications'], 1)

    def test_empty_database(self):
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_stock'], 0)
        self.assertEqual(response.data['damaged_units'], 0)

    def test_second_request_is_cached(self):
        first = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(first['X-Cache'], 'MISS')
        second = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(second['X-Cache'], 'HIT')

    def test_unread_count_is_per_user(self):
        self.client.get('/api/v1/dashboard/summary/')
        TestDataFactory.create_notification(self.user)
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response['X-Cache'], 'HIT')
        self.assertEqual(response.data['unread_notifications'], 1)

    def test_equipment_change_invalidates_cache(self):
        self.client.get('/api/v1/dashboard/summary/')
        with self.captureOnCommitCallbacks(execute=True):
            self.client.post('/api/v1/equipments/', {'name': 'Amp', 'category': 'Amplifier', 'stock': 4}, format='json')
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_stock'], 4)

    def test_stock_movement_invalidates_cache(self):
        speaker = TestDataFactory.create_equipment(stock=5)
        self.client.get('/api/v1/dashboard/summary/')
        self.client.post('/api/v1/damaged-equipments/', {
            'equipment_id': speaker.id, 'quantity': 2,
        }, format='json')
        response = self.client.get('/api/v1/dashboard/summary/')
        self.assertEqual(response['X-Cache'], 'MISS')
        self.assertEqual(response.data['total_stock'], 3)
        self.assertEqual(response.data['damaged_units'], 2)
