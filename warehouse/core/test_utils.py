"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from warehouse.core.models import Company, Location
from warehouse.catalog.models import Product
from warehouse.inventory.models import InventoryItem, LoadMetadata, LoadConflict
from warehouse.scanning.models import ScanningSession, ProductLocation
from warehouse.parts.models import TrackedPart
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False,
                    is_superuser=False, role='member', companies=None, image=None):
        """Create a test user, optionally with company access"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            role=role,
            image=image,
        )
        if companies:
            user.companies.set(companies)
        return user

    @staticmethod
    def create_company(name=None, slug=None):
        """Create a test company"""
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'company-{TestDataFactory.random_string(8).lower()}'
        return Company.objects.create(name=name, slug=slug)

    @staticmethod
    def create_location(company=None, name=None, slug=None, active=True):
        """Create a test location"""
        if not company:
            company = TestDataFactory.create_company()
        if not name:
            name = f'Location_{TestDataFactory.random_string(6)}'
        if not slug:
            slug = f'location-{TestDataFactory.random_string(8).lower()}'
        return Location.objects.create(company=company, name=name, slug=slug, active=active)

    @staticmethod
    def create_product(model=None, product_type='Washer', brand='GE', is_part=False, **kwargs):
        """Create a test product"""
        if not model:
            model = f'MOD{TestDataFactory.random_string(8).upper()}'
        return Product.objects.create(
            model=model,
            product_type=product_type,
            brand=brand,
            is_part=is_part,
            **kwargs
        )

    @staticmethod
    def create_item(location, inventory_type='ASIS', sub_inventory=None, serial=None, model=None,
                    product=None, cso='ASIS', qty=1, **kwargs):
        """Create a test inventory item at a location"""
        if serial is None:
            serial = f'SN{TestDataFactory.random_string(10).upper()}'
        if not model:
            model = product.model if product else f'MOD{TestDataFactory.random_string(6).upper()}'
        return InventoryItem.objects.create(
            company=location.company,
            location=location,
            cso=cso,
            serial=serial,
            model=model,
            product_type=kwargs.pop('product_type', product.product_type if product else 'Washer'),
            product=product,
            inventory_type=inventory_type,
            sub_inventory=sub_inventory,
            qty=qty,
            **kwargs
        )

    @staticmethod
    def create_load(location, sub_inventory_name=None, inventory_type='ASIS', **kwargs):
        """Create a test load"""
        if not sub_inventory_name:
            sub_inventory_name = f'L{random.randint(100000, 999999)}'
        return LoadMetadata.objects.create(
            company=location.company,
            location=location,
            inventory_type=inventory_type,
            sub_inventory_name=sub_inventory_name,
            **kwargs
        )

    @staticmethod
    def create_conflict(location, serial=None, load_number='L1', conflicting_load='L2', inventory_type='ASIS'):
        """Create a test load conflict"""
        return LoadConflict.objects.create(
            company=location.company,
            location=location,
            inventory_type=inventory_type,
            load_number=load_number,
            serial=serial or f'SN{TestDataFactory.random_string(8).upper()}',
            conflicting_load=conflicting_load,
        )

    @staticmethod
    def create_position(location, item=None, session=None, position_x=10.0, position_y=20.0, **kwargs):
        """Record a test scan position"""
        return ProductLocation.objects.create(
            company=location.company,
            location=location,
            inventory_item=item,
            product=item.product if item else kwargs.pop('product', None),
            product_type=item.product_type if item else kwargs.pop('product_type', None),
            sub_inventory=item.sub_inventory if item else kwargs.pop('sub_inventory', None),
            scanning_session=session,
            position_x=position_x,
            position_y=position_y,
            **kwargs
        )

    @staticmethod
    def create_session(location, items, name=None, inventory_type='ASIS', sub_inventory=None, status='active'):
        """Create a test scanning session with a minimal snapshot of items"""
        return ScanningSession.objects.create(
            company=location.company,
            location=location,
            name=name or f'Session {TestDataFactory.random_string(4)}',
            inventory_type=inventory_type,
            sub_inventory=sub_inventory,
            status=status,
            items=[{'id': item.id, 'serial': item.serial, 'model': item.model} for item in items],
            scanned_item_ids=[],
        )

    @staticmethod
    def create_tracked_part(location, product=None, reorder_threshold=5, **kwargs):
        """Create a test tracked part"""
        if not product:
            product = TestDataFactory.create_product(product_type='Part', is_part=True)
        return TrackedPart.objects.create(
            company=location.company,
            location=location,
            product=product,
            reorder_threshold=reorder_threshold,
            **kwargs
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication and active location helpers"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        self._user = user
        return self

    def use_location(self, location):
        """Send X-Location-Id on every request"""
        refresh = RefreshToken.for_user(self._user)
        self.credentials(
            HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}',
            HTTP_X_LOCATION_ID=str(location.id),
        )
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
