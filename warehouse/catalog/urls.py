from django.urls import path
from .views import product_list_create, product_detail, product_by_model, inventory_brands

urlpatterns = [
    path('products/', product_list_create, name='product-list-create'),
    path('products/brands/', inventory_brands, name='product-brands'),
    path('products/by-model/<str:model>/', product_by_model, name='product-by-model'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
]
