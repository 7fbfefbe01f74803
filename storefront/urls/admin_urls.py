"""Admin API URL configuration. Everything except login/logout/session requires admin_required."""
from django.urls import path
from storefront.views.admin import (
    admin_login,
    admin_logout,
    admin_session,
    banner_detail,
    banner_move,
    banner_toggle,
    banners,
    coupon_detail,
    coupons,
    menu_item_detail,
    menu_items,
    order_acknowledge,
    order_acknowledge_all,
    order_list,
    order_transition,
    store_settings,
)

urlpatterns = [
    path('login/', admin_login),
    path('logout/', admin_logout),
    path('session/', admin_session),
    path('orders/', order_list),
    path('orders/acknowledge-all/', order_acknowledge_all),
    path('orders/<str:order_id>/acknowledge/', order_acknowledge),
    path('orders/<str:order_id>/<str:action>/', order_transition),
    path('menu/', menu_items),
    path('menu/<str:item_id>/', menu_item_detail),
    path('coupons/', coupons),
    path('coupons/<str:code>/', coupon_detail),
    path('settings/', store_settings),
    path('banners/', banners),
    path('banners/<str:banner_id>/', banner_detail),
    path('banners/<str:banner_id>/toggle/', banner_toggle),
    path('banners/<str:banner_id>/move/', banner_move),
]
