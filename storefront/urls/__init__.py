# URL packages - customer routes at the root of /api/, admin routes under /api/admin/
from django.urls import path, include

urlpatterns = [
    path('admin/', include('storefront.urls.admin_urls')),
    path('', include('storefront.urls.customer_urls')),
]
