from django.contrib import admin
from .models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['model', 'product_type', 'brand', 'is_part', 'price', 'updated_at']
    list_filter = ['is_part', 'product_type', 'brand']
    search_fields = ['model', 'brand', 'description']
    ordering = ['model']
    readonly_fields = ['created_at', 'updated_at']
