"""
Test suite for the Catalog module
Tests: product list filters, CRUD permissions, lookup by model, brands
"""
from django.test import TestCase
from rest_framework import status
from warehouse.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from warehouse.catalog.models import Product


class ProductListTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        TestDataFactory.create_product(model='GTW485ASJWS', product_type='Washer', brand='GE',
                                       description='Top load washer')
        TestDataFactory.create_product(model='GFD55ESSNWW', product_type='Dryer', brand='GE')
        TestDataFactory.create_product(model='WR55X10942', product_type='Part', brand='Hotpoint', is_part=True)

    def test_list_all(self):
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 3)

    def test_search_matches_description(self):
        response = self.client.get('/api/v1/products/', {'search': 'top load'})
        self.assertEqual([p['model'] for p in response.data], ['GTW485ASJWS'])

    def test_filter_type_and_part_flag(self):
        response = self.client.get('/api/v1/products/?product_type=dryer')
        self.assertEqual([p['model'] for p in response.data], ['GFD55ESSNWW'])

        response = self.client.get('/api/v1/products/?is_part=true')
        self.assertEqual([p['model'] for p in response.data], ['WR55X10942'])

    def test_limit(self):
        response = self.client.get('/api/v1/products/?limit=2')
        self.assertEqual(len(response.data), 2)

    def test_lookup_by_model(self):
        response = self.client.get('/api/v1/products/by-model/gfd55essnww/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['product_type'], 'Dryer')

    def test_lookup_by_unknown_model(self):
        response = self.client.get('/api/v1/products/by-model/NOPE/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_brands_distinct_sorted(self):
        TestDataFactory.create_product(brand='')
        response = self.client.get('/api/v1/products/brands/')
        self.assertEqual(response.data, ['GE', 'Hotpoint'])


class ProductWriteTests(TestCase):

    def setUp(self):
        self.member = TestDataFactory.create_user()
        self.admin = TestDataFactory.create_user(is_staff=True)
        self.client = AuthenticatedAPIClient()

    def test_member_cannot_create(self):
        self.client.authenticate_user(self.member)
        response = self.client.post('/api/v1/products/', {'model': 'ABC123', 'product_type': 'Range'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_staff_create_update_delete(self):
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/products/', {'model': ' ABC123 ', 'product_type': 'Range'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['model'], 'ABC123')
        product_id = response.data['id']

        response = self.client.patch(f'/api/v1/products/{product_id}/', {'brand': 'Cafe'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Product.objects.get(pk=product_id).brand, 'Cafe')

        response = self.client.delete(f'/api/v1/products/{product_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product_id).exists())

    def test_duplicate_model_rejected(self):
        TestDataFactory.create_product(model='DUP1')
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/products/', {'model': 'DUP1', 'product_type': 'Range'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
