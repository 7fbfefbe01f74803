"""Customer API URL configuration. No login; cart, tracking and notifications are per session."""
from django.urls import path
from storefront.views.customer import (
    banner_list,
    cart_add_item,
    cart_coupon,
    cart_customer,
    cart_detail,
    cart_payment_method,
    cart_remove_item,
    cart_set_quantity,
    checkout,
    checkout_cancel_upi,
    checkout_confirm_upi,
    checkout_upi_qr,
    menu_list,
    notification_detail,
    notification_list,
    notification_read_all,
    order_active,
    order_history,
    order_reorder,
    store_info,
    toast_dismiss,
)

urlpatterns = [
    path('menu/', menu_list),
    path('store/', store_info),
    path('banners/', banner_list),
    path('cart/', cart_detail),
    path('cart/items/', cart_add_item),
    path('cart/items/<str:item_id>/', cart_set_quantity),
    path('cart/items/<str:item_id>/remove/', cart_remove_item),
    path('cart/coupon/', cart_coupon),
    path('cart/customer/', cart_customer),
    path('cart/payment-method/', cart_payment_method),
    path('checkout/', checkout),
    path('checkout/confirm/', checkout_confirm_upi),
    path('checkout/cancel/', checkout_cancel_upi),
    path('checkout/upi-qr/', checkout_upi_qr),
    path('orders/active/', order_active),
    path('orders/history/', order_history),
    path('orders/<str:order_id>/reorder/', order_reorder),
    path('notifications/', notification_list),
    path('notifications/read-all/', notification_read_all),
    path('notifications/<str:notification_id>/', notification_detail),
    path('toasts/<str:toast_id>/', toast_dismiss),
]
