"""
URL configuration for the SalesHostel backend.

Every app's endpoints are mounted under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "SalesHostel Admin Panel"
admin.site.site_title = "SalesHostel Admin Portal"
admin.site.index_title = "Welcome to SalesHostel Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('saleshostel.core.urls')),
    path('api/v1/', include('saleshostel.catalog.urls')),
    path('api/v1/', include('saleshostel.inventory.urls')),
    path('api/v1/', include('saleshostel.cart.urls')),
    path('api/v1/', include('saleshostel.orders.urls')),
    path('api/v1/', include('saleshostel.payments.urls')),
    path('api/v1/', include('saleshostel.suppliers.urls')),
    path('api/v1/', include('saleshostel.purchasing.urls')),
    path('api/v1/', include('saleshostel.reports.urls')),
]
