"""
Test suite for the core module
Tests: auth endpoints, active location resolution, settings, activity log, stats cache
"""
from django.core.cache import cache
from django.test import TestCase, RequestFactory, override_settings
from rest_framework import status
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from rest_framework_simplejwt.tokens import RefreshToken
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.core.models import ActivityLog, LocationSettings
from warehouse.core.tenant import get_active_location
from warehouse.core.utils import log_activity, get_actor_name, parse_leading_int
from warehouse.core.cache_utils import cached_location_stat, get_stats_version, invalidate_location_stats
from warehouse.core.cache_signals import suspend_cache_signals


class AuthTests(TestCase):
    """Test registration, login and the current user endpoint"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_creates_pending_user(self):
        """A new account has no company access yet"""
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'newuser',
            'email': 'newuser@test.com',
            'password': 'S3cure-pass-123',
            'password_confirm': 'S3cure-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = self.client.get('/api/v1/auth/me/')
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertTrue(me.data['pending_access'])
        self.assertEqual(me.data['companies'], [])

    def test_login_returns_tokens(self):
        TestDataFactory.create_user(username='loginuser', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'loginuser', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_rejects_disabled_user(self):
        user = TestDataFactory.create_user(username='disabled', password='testpass123')
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'disabled', 'password': 'testpass123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_returns_new_access_token(self):
        user = TestDataFactory.create_user()
        refresh = RefreshToken.for_user(user)
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_rejects_deleted_user(self):
        user = TestDataFactory.create_user()
        refresh = RefreshToken.for_user(user)
        user.delete()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_rejects_disabled_user(self):
        user = TestDataFactory.create_user()
        refresh = RefreshToken.for_user(user)
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': str(refresh)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_rejects_garbage_token(self):
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': 'not-a-token'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_with_company_access(self):
        company = TestDataFactory.create_company()
        user = TestDataFactory.create_user(companies=[company], role='admin')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['pending_access'])
        self.assertTrue(response.data['is_admin'])
        self.assertEqual(len(response.data['companies']), 1)


class ActiveLocationTests(TestCase):
    """Test X-Location-Id / location_id / default resolution"""

    def setUp(self):
        self.factory = RequestFactory()
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])

    def _request(self, path='/', **extra):
        request = self.factory.get(path, **extra)
        request.user = self.user
        return request

    def test_header_takes_precedence(self):
        other = TestDataFactory.create_location(company=self.company)
        request = self._request(f'/?location_id={other.id}', HTTP_X_LOCATION_ID=str(self.location.id))
        self.assertEqual(get_active_location(request), self.location)

    def test_query_param(self):
        request = self._request(f'/?location_id={self.location.id}')
        self.assertEqual(get_active_location(request), self.location)

    @override_settings(WAREHOUSE_DEFAULT_LOCATION_ID=None)
    def test_missing_location(self):
        with self.assertRaises(ValidationError):
            get_active_location(self._request())

    def test_default_location_setting(self):
        with self.settings(WAREHOUSE_DEFAULT_LOCATION_ID=str(self.location.id)):
            self.assertEqual(get_active_location(self._request()), self.location)

    def test_inactive_location_not_found(self):
        self.location.active = False
        self.location.save()
        with self.assertRaises(NotFound):
            get_active_location(self._request(HTTP_X_LOCATION_ID=str(self.location.id)))

    def test_no_company_access(self):
        outsider = TestDataFactory.create_user()
        request = self._request(HTTP_X_LOCATION_ID=str(self.location.id))
        request.user = outsider
        with self.assertRaises(PermissionDenied):
            get_active_location(request)

    def test_superuser_has_access(self):
        request = self._request(HTTP_X_LOCATION_ID=str(self.location.id))
        request.user = TestDataFactory.create_user(is_superuser=True)
        self.assertEqual(get_active_location(request), self.location)

    @override_settings(WAREHOUSE_DEFAULT_LOCATION_ID=None)
    def test_api_missing_location_returns_400(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Missing active location ID', str(response.data))


class LocationEndpointTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company])
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)

    def test_location_list_limited_to_companies(self):
        TestDataFactory.create_location()  # another company
        response = self.client.get('/api/v1/locations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([loc['id'] for loc in response.data], [self.location.id])

    def test_settings_created_on_demand(self):
        response = self.client.get('/api/v1/settings/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(LocationSettings.objects.filter(location=self.location).exists())

    def test_settings_patch_stamps_cookie_update(self):
        response = self.client.patch('/api/v1/settings/', {
            'sso_username': 'warehouse-sso',
            'ge_cookies': {'session': 'abc'},
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        settings_row = LocationSettings.objects.get(location=self.location)
        self.assertEqual(settings_row.sso_username, 'warehouse-sso')
        self.assertIsNotNone(settings_row.ge_cookies_updated_at)

    def test_settings_patch_without_cookies_keeps_stamp(self):
        self.client.patch('/api/v1/settings/', {'sso_username': 'only-name'}, format='json')
        settings_row = LocationSettings.objects.get(location=self.location)
        self.assertIsNone(settings_row.ge_cookies_updated_at)


class ActivityLogTests(TestCase):

    def setUp(self):
        self.company = TestDataFactory.create_company()
        self.location = TestDataFactory.create_location(company=self.company)
        self.user = TestDataFactory.create_user(companies=[self.company], image='https://img.test/a.png')
        self.client = AuthenticatedAPIClient().authenticate_user(self.user).use_location(self.location)

    def test_actor_name_fallbacks(self):
        self.assertEqual(get_actor_name(self.user), self.user.username)
        self.user.username = ''
        self.assertEqual(get_actor_name(self.user), self.user.email)
        self.assertEqual(get_actor_name(None), 'Unknown User')

    def test_log_activity_records_actor(self):
        entry = log_activity(location=self.location, user=self.user, action='load_update',
                             entity_type='load', entity_id=5, details={'a': 1})
        self.assertIsNotNone(entry)
        self.assertEqual(entry.actor_name, self.user.username)
        self.assertEqual(entry.actor_image, 'https://img.test/a.png')
        self.assertEqual(entry.entity_id, '5')
        self.assertEqual(entry.company_id, self.company.id)

    def test_log_activity_without_location_returns_none(self):
        self.assertIsNone(log_activity(location=None, user=self.user, action='load_update'))
        self.assertEqual(ActivityLog.objects.count(), 0)

    def test_log_activity_without_user_returns_none(self):
        self.assertIsNone(log_activity(location=self.location, user=None, action='load_update'))

    def test_parse_leading_int(self):
        self.assertEqual(parse_leading_int('12 units'), 12)
        self.assertEqual(parse_leading_int(' -3'), -3)
        self.assertEqual(parse_leading_int(4), 4)
        self.assertEqual(parse_leading_int(2.9), 2)
        self.assertIsNone(parse_leading_int('units'))
        self.assertIsNone(parse_leading_int(''))
        self.assertIsNone(parse_leading_int(None))

    def test_activity_list_pages(self):
        for i in range(55):
            log_activity(location=self.location, user=self.user, action='item_scanned', entity_id=i)
        first = self.client.get('/api/v1/activity/')
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(len(first.data['results']), 50)
        self.assertEqual(first.data['next_page'], 1)

        second = self.client.get('/api/v1/activity/?page=1')
        self.assertEqual(len(second.data['results']), 5)
        self.assertIsNone(second.data['next_page'])

    def test_activity_list_hydrates_current_profile(self):
        log_activity(location=self.location, user=self.user, action='item_scanned')
        self.user.image = 'https://img.test/new.png'
        self.user.save()
        response = self.client.get('/api/v1/activity/')
        self.assertEqual(response.data['results'][0]['actor_image'], 'https://img.test/new.png')

    def test_activity_create(self):
        response = self.client.post('/api/v1/activity/', {
            'action': 'sanity_check_requested', 'entity_type': 'load', 'entity_id': '9'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(ActivityLog.objects.filter(location=self.location).count(), 1)


class StatsCacheTests(TestCase):
    """Test versioned per-location stats caching"""

    def setUp(self):
        cache.clear()
        self.location = TestDataFactory.create_location()
        self.calls = 0

        @cached_location_stat('test_stat', cache_ttl=60)
        def stat(location):
            self.calls += 1
            return self.calls

        self.stat = stat

    def test_cached_until_invalidated(self):
        self.assertEqual(self.stat(self.location), 1)
        self.assertEqual(self.stat(self.location), 1)
        invalidate_location_stats(self.location.id)
        self.assertEqual(self.stat(self.location), 2)

    def test_item_save_bumps_version(self):
        version = get_stats_version(self.location.id)
        TestDataFactory.create_item(self.location)
        self.assertGreater(get_stats_version(self.location.id), version)

    def test_suspended_signals_do_not_bump(self):
        version = get_stats_version(self.location.id)
        with suspend_cache_signals():
            TestDataFactory.create_item(self.location)
        self.assertEqual(get_stats_version(self.location.id), version)

    def test_none_location_bypasses_cache(self):
        self.assertEqual(self.stat(None), 1)
        self.assertEqual(self.stat(None), 2)
