import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from .models import Product
from .serializers import ProductSerializer
from .filters import ProductFilter

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_LIMIT = 100


def _forbidden_unless_admin(request):
    if not request.user.is_location_admin:
        return Response({'error': 'Only admins can modify the product catalog'}, status=status.HTTP_403_FORBIDDEN)
    return None


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products (search/type/brand/is_part filters) or create a product"""
    if request.method == 'GET':
        product_filter = ProductFilter(request.query_params, queryset=Product.objects.all())
        if not product_filter.is_valid():
            return Response(product_filter.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            limit = int(request.query_params.get('limit', DEFAULT_PRODUCT_LIMIT))
        except ValueError:
            limit = DEFAULT_PRODUCT_LIMIT
        products = product_filter.qs.order_by('model')[:max(limit, 1)]
        serializer = ProductSerializer(products, many=True)
        return Response(serializer.data)

    denied = _forbidden_unless_admin(request)
    if denied:
        return denied
    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        product = serializer.save()
        logger.info(f"User {request.user.username} created product {product.model}")
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product, pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)

    denied = _forbidden_unless_admin(request)
    if denied:
        return denied

    if request.method in ('PUT', 'PATCH'):
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    product.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_by_model(request, model):
    """Look up a product by its model number"""
    product = get_object_or_404(Product, model__iexact=model.strip())
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_brands(request):
    """Distinct, sorted brands across the catalog"""
    brands = (
        Product.objects.exclude(brand__isnull=True)
        .exclude(brand='')
        .values_list('brand', flat=True)
        .distinct()
    )
    return Response(sorted(set(brands)))
