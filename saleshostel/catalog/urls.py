from django.urls import path
from .views import (
    product_list, product_detail, products_by_category, product_search, featured_products,
    category_list, category_by_slug,
    admin_product_list_create, admin_product_detail, admin_product_toggle_active,
    admin_category_list_create, admin_category_detail,
    supplier_products
)

urlpatterns = [
    # Public storefront
    path('products/', product_list, name='product-list'),
    path('products/search/', product_search, name='product-search'),
    path('products/featured/', featured_products, name='product-featured'),
    path('products/category/<slug:slug>/', products_by_category, name='products-by-category'),
    path('products/<int:pk>/', product_detail, name='product-detail'),
    path('categories/', category_list, name='category-list'),
    path('categories/<slug:slug>/', category_by_slug, name='category-by-slug'),

    # Admin
    path('admin/products/', admin_product_list_create, name='admin-product-list-create'),
    path('admin/products/<int:pk>/', admin_product_detail, name='admin-product-detail'),
    path('admin/products/<int:pk>/toggle-active/', admin_product_toggle_active, name='admin-product-toggle-active'),
    path('admin/categories/', admin_category_list_create, name='admin-category-list-create'),
    path('admin/categories/<int:pk>/', admin_category_detail, name='admin-category-detail'),

    # Supplier
    path('supplier/products/', supplier_products, name='supplier-products'),
]
