from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def root_view(request):
    """Root URL: API info. ?admin switches the pointer to the admin API."""
    if request.is_admin_mode:
        return JsonResponse({
            'name': 'Flash Pizza Admin',
            'mode': 'admin',
            'api': '/api/admin/',
            'login': '/api/admin/login/',
            'websocket': '/ws/sync/',
        })
    return JsonResponse({
        'name': 'Flash Pizza',
        'mode': 'customer',
        'api': '/api/',
        'menu': '/api/menu/',
        'websocket': '/ws/sync/',
    })


urlpatterns = [
    path('', root_view),
    path('api/', include('storefront.urls')),
    path('django-admin/', admin.site.urls),
]
