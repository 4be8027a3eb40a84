"""
Tests for accounts, authentication, audit logging and the demo seed command
"""
from io import StringIO
from unittest import mock

from django.conf import settings
from django.core.management import call_command
from django.db import DatabaseError, transaction
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken
from soundstock.core.models import User, AuditLog
from soundstock.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from soundstock.core.utils import create_audit_log
from soundstock.equipment.models import Equipment
from soundstock.events.models import Event


class RegisterTests(TestCase):
    """Test the public registration endpoint"""

    def setUp(self):
        self.client = APIClient()
        self.payload = {
            'name': 'Dewi Sound',
            'email': 'Dewi@Example.com',
            'whatsapp': '081234567890',
            'password': 'secret1',
        }

    def test_register_creates_user(self):
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'dewi@example.com')
        self.assertEqual(response.data['user']['role'], 'user')
        self.assertNotIn('password', response.data['user'])

    def test_password_is_hashed_with_argon2(self):
        self.client.post('/api/v1/auth/register/', self.payload, format='json')
        user = User.objects.get(email='dewi@example.com')
        self.assertTrue(user.password.startswith('argon2'))
        self.assertTrue(user.check_password('secret1'))

    def test_duplicate_email_rejected(self):
        TestDataFactory.create_user(email='dewi@example.com')
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_duplicate_whatsapp_rejected(self):
        TestDataFactory.create_user(whatsapp='081234567890')
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('whatsapp', response.data)

    def test_short_password_rejected(self):
        self.payload['password'] = '12345'
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_short_whatsapp_rejected(self):
        self.payload['whatsapp'] = '0812'
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('whatsapp', response.data)

    def test_missing_fields_rejected(self):
        response = self.client.post('/api/v1/auth/register/', {'email': 'x@example.com'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ('name', 'whatsapp', 'password'):
            self.assertIn(field, response.data)

    def test_register_with_stale_cookie(self):
        """An expired or garbage cookie must not block public endpoints"""
        self.client.cookies[settings.JWT_AUTH_COOKIE] = 'not-a-token'
        response = self.client.post('/api/v1/auth/register/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_login_with_registered_mixed_case_email(self):
        self.client.post('/api/v1/auth/register/', self.payload, format='json')
        for email in ('Dewi@Example.com', 'dewi@example.com', ' DEWI@EXAMPLE.COM '):
            response = self.client.post('/api/v1/auth/login/', {
                'email': email, 'password': 'secret1',
            }, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK, email)
            self.assertEqual(response.data['user']['email'], 'dewi@example.com')


class LoginLogoutTests(TestCase):
    """Test login, cookie handling and logout"""

    def setUp(self):
        self.client = APIClient()
        self.user = TestDataFactory.create_user(email='rina@example.com', password='secret12')

    def test_login_returns_tokens_and_sets_cookie(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'rina@example.com', 'password': 'secret12',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['email'], 'rina@example.com')

        cookie = response.cookies[settings.JWT_AUTH_COOKIE]
        self.assertEqual(cookie.value, response.data['access'])
        self.assertTrue(cookie['httponly'])
        self.assertEqual(cookie['samesite'], 'Lax')
        self.assertEqual(int(cookie['max-age']), 60 * 60 * 24)

    def test_token_carries_email_and_role(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'rina@example.com', 'password': 'secret12',
        }, format='json')
        token = AccessToken(response.data['access'])
        self.assertEqual(str(token['user_id']), str(self.user.id))
        self.assertEqual(token['email'], 'rina@example.com')
        self.assertEqual(token['role'], 'user')

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'rina@example.com', 'password': 'wrong-pass',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertNotIn(settings.JWT_AUTH_COOKIE, response.cookies)

    def test_login_disabled_account(self):
        TestDataFactory.create_user(email='off@example.com', password='secret12', is_active=False)
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'off@example.com', 'password': 'secret12',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_cookie_authenticates_requests(self):
        login = self.client.post('/api/v1/auth/login/', {
            'email': 'rina@example.com', 'password': 'secret12',
        }, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)
        # APIClient keeps the cookie from the login response
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], 'rina@example.com')

    def test_invalid_cookie_is_anonymous(self):
        self.client.cookies[settings.JWT_AUTH_COOKIE] = 'garbage'
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_header_is_rejected(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer garbage')
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_clears_cookie(self):
        self.client.post('/api/v1/auth/login/', {
            'email': 'rina@example.com', 'password': 'secret12',
        }, format='json')
        response = self.client.post('/api/v1/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        cookie = response.cookies[settings.JWT_AUTH_COOKIE]
        self.assertEqual(cookie.value, '')
        self.assertEqual(int(cookie['max-age']), 0)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class ProfileTests(TestCase):
    """Test profile update and password change"""

    def setUp(self):
        self.user = TestDataFactory.create_user(
            email='joko@example.com', password='oldpass1', name='Joko', whatsapp='081111111111',
        )
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_update_profile(self):
        response = self.client.put('/api/v1/auth/profile/', {
            'name': 'Joko Widodo', 'email': 'joko.w@example.com', 'whatsapp': '081111111112',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Joko Widodo')
        self.assertEqual(self.user.email, 'joko.w@example.com')
        self.assertTrue(self.user.check_password('oldpass1'))

    def test_change_password(self):
        response = self.client.put('/api/v1/auth/profile/', {
            'name': 'Joko', 'email': 'joko@example.com', 'whatsapp': '081111111111',
            'current_password': 'oldpass1', 'new_password': 'newpass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('newpass1'))

    def test_change_password_wrong_current(self):
        response = self.client.put('/api/v1/auth/profile/', {
            'name': 'Joko', 'email': 'joko@example.com', 'whatsapp': '081111111111',
            'current_password': 'nope', 'new_password': 'newpass1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('current_password', response.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('oldpass1'))

    def test_new_password_too_short(self):
        response = self.client.put('/api/v1/auth/profile/', {
            'name': 'Joko', 'email': 'joko@example.com', 'whatsapp': '081111111111',
            'current_password': 'oldpass1', 'new_password': '123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_email_taken_by_other_user(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.put('/api/v1/auth/profile/', {
            'name': 'Joko', 'email': 'taken@example.com', 'whatsapp': '081111111111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_name_required(self):
        response = self.client.put('/api/v1/auth/profile/', {
            'email': 'joko@example.com', 'whatsapp': '081111111111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)


class UserAdminAPITests(TestCase):
    """Test the admin-only user management endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_regular_user_forbidden(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_users(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_admin_creates_admin(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/users/', {
            'name': 'New Admin', 'email': 'new@example.com', 'whatsapp': '081299999999',
            'password': 'secret12', 'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'admin')

    def test_admin_deactivates_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/users/{self.user.id}/', {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

    def test_admin_cannot_delete_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admin_deletes_user(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.filter(pk=self.user.id).exists())

    def test_token_of_deleted_user_is_rejected(self):
        token = RefreshToken.for_user(self.user).access_token
        self.user.delete()
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuditLogTests(TestCase):
    """Test audit log creation and visibility"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        create_audit_log(action='create', model_name='Equipment', object_id=1, user=self.user, object_name='Mixer')
        create_audit_log(action='delete', model_name='Event', object_id=2, user=self.other, object_name='Gig')

    def test_create_audit_log_requires_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name=None, object_id=1))

    def test_audit_failure_keeps_surrounding_transaction_usable(self):
        with transaction.atomic():
            with mock.patch.object(AuditLog.objects, 'create', side_effect=DatabaseError('insert failed')):
                result = create_audit_log(action='create', model_name='Equipment', object_id=1, user=self.user)
            self.assertIsNone(result)
            Equipment.objects.create(name='Mixer', category='Mixer', stock=1)
        self.assertTrue(Equipment.objects.filter(name='Mixer').exists())
        self.assertEqual(AuditLog.objects.count(), 2)

    def test_audit_insert_runs_in_savepoint(self):
        with mock.patch('soundstock.core.utils.transaction', wraps=transaction) as tx:
            create_audit_log(action='create', model_name='Equipment', object_id=3, user=self.user)
        tx.atomic.assert_called_once_with()

    def test_user_sees_only_own_logs(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['object_name'], 'Mixer')

    def test_admin_sees_all_and_filters(self):
        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/audit-logs/', {'model': 'Event'})
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['action'], 'delete')

    def test_detail_of_other_user_forbidden(self):
        log = AuditLog.objects.get(user=self.other)
        self.client.authenticate_user(self.user)
        response = self.client.get(f'/api/v1/audit-logs/{log.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_equipment_create_is_audited(self):
        self.client.authenticate_user(self.user)
        self.client.post('/api/v1/equipments/', {'name': 'Amp', 'category': 'Amplifier', 'stock': 2}, format='json')
        log = AuditLog.objects.filter(model_name='Equipment', action='create', object_name='Amp').first()
        self.assertIsNotNone(log)
        self.assertEqual(log.user, self.user)
        self.assertEqual(log.changes['stock'], 2)
        self.assertEqual(log.ip_address, '127.0.0.1')


class SeedDemoCommandTests(TestCase):
    """Test the seed_demo management command"""

    def test_seed_creates_demo_data(self):
        out = StringIO()
        call_command('seed_demo', stdout=out)
        self.assertTrue(User.objects.filter(email='alice@example.com', role='admin').exists())
        self.assertEqual(Event.objects.count(), 2)
        speaker = Equipment.objects.get(name='Main Speaker')
        # 8 units seeded, 4 reserved by the concert
        self.assertEqual(speaker.stock, 4)
        self.assertIn('Done', out.getvalue())

    def test_seed_is_idempotent(self):
        call_command('seed_demo', stdout=StringIO())
        call_command('seed_demo', stdout=StringIO())
        self.assertEqual(User.objects.filter(email='alice@example.com').count(), 1)
        self.assertEqual(Event.objects.count(), 2)
        self.assertEqual(Equipment.objects.get(name='Main Speaker').stock, 4)

    def test_seed_clear_resets_stock(self):
        call_command('seed_demo', stdout=StringIO())
        call_command('seed_demo', '--clear', stdout=StringIO())
        self.assertEqual(Event.objects.count(), 2)
        self.assertEqual(Equipment.objects.get(name='Main Speaker').stock, 4)
