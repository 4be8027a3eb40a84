from django.test import TestCase
from rest_framework import status
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from soundstock.notifications.models import Notification
from soundstock.notifications.utils import notify_all_users


class NotifyAllUsersTests(TestCase):

    def test_creates_one_per_active_user(self):
        active = [TestDataFactory.create_user(), TestDataFactory.create_user()]
        inactive = TestDataFactory.create_user(is_active=False)
        created = notify_all_users('Hello', 'World', Notification.TYPE_INFO)
        self.assertEqual(created, 2)
        for user in active:
            self.assertEqual(user.notifications.count(), 1)
        self.assertEqual(inactive.notifications.count(), 0)


class NotificationAPITests(TestCase):
    """Test Notification API endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.unread = TestDataFactory.create_notification(self.user, title='Unread')
        self.read = TestDataFactory.create_notification(self.user, title='Read', is_read=True)
        self.foreign = TestDataFactory.create_notification(self.other, title='Not yours')

    def test_list_own_notifications_with_unread_count(self):
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        titles = {n['title'] for n in response.data['notifications']}
        self.assertEqual(titles, {'Unread', 'Read'})
        self.assertEqual(response.data['unread_count'], 1)

    def test_list_unread_only(self):
        response = self.client.get('/api/v1/notifications/', {'unread': 'true'})
        self.assertEqual([n['title'] for n in response.data['notifications']], ['Unread'])

    def test_mark_read(self):
        response = self.client.patch(f'/api/v1/notifications/{self.unread.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_read'])
        self.unread.refresh_from_db()
        self.assertTrue(self.unread.is_read)

    def test_mark_all_read(self):
        TestDataFactory.create_notification(self.user, title='Another')
        response = self.client.patch('/api/v1/notifications/mark-all-read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.is_read)

    def test_delete(self):
        response = self.client.delete(f'/api/v1/notifications/{self.read.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=self.read.id).exists())

    def test_other_users_notification_is_404(self):
        response = self.client.patch(f'/api/v1/notifications/{self.foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/notifications/{self.foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(Notification.objects.filter(pk=self.foreign.id).exists())

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
