import pytest
from django.test import Client

pytestmark = pytest.mark.django_db

CUSTOMER = {
    'name': 'Asha',
    'phone': '9876543210',
    'address': '12 MG Road',
    'location': {'lat': 12.975, 'lng': 77.6},
}


@pytest.fixture
def client(hub):
    return Client()


@pytest.fixture
def admin_client(hub):
    c = Client()
    response = c.post('/api/admin/login/', {'password': 'admin123'}, content_type='application/json')
    assert response.status_code == 200
    return c


def add(client, item_id, times=1):
    for _ in range(times):
        response = client.post('/api/cart/items/', {'itemId': item_id}, content_type='application/json')
        assert response.status_code == 200
    return response.json()


def test_api_writes_need_no_csrf_token(hub):
    strict = Client(enforce_csrf_checks=True)
    response = strict.post('/api/cart/items/', {'itemId': 'v1'}, content_type='application/json')
    assert response.status_code == 200
    response = strict.post('/api/admin/login/', {'password': 'admin123'}, content_type='application/json')
    assert response.status_code == 200


def test_root_view_respects_admin_flag(client):
    assert client.get('/').json()['mode'] == 'customer'
    assert client.get('/?admin').json()['mode'] == 'admin'


def test_menu_filters(client):
    data = client.get('/api/menu/', {'category': 'beverages', 'sort': 'price-low'}).json()
    assert [i['id'] for i in data['results']] == ['b2', 'b1', 'b3']
    assert data['results'][0]['isAvailable'] is True
    assert client.get('/api/menu/', {'sort': 'bogus'}).status_code == 400


def test_store_and_banners(client):
    store = client.get('/api/store/').json()
    assert store['store']['upiId'] == 'flashpizza@upi'
    assert store['mode'] == 'local'
    banners = client.get('/api/banners/').json()['results']
    assert banners[0]['id'] == 'legacy'


def test_cart_flow_and_totals(client):
    data = add(client, 'v1', times=2)
    assert data['totals'] == {
        'subtotal': 398, 'discount': 0, 'deliveryCharge': 0, 'total': 398,
        'itemCount': 2, 'amountForFreeDelivery': 0,
    }
    data = client.post('/api/cart/items/v1/remove/').json()
    assert data['totals']['subtotal'] == 199
    assert data['totals']['deliveryCharge'] == 35
    data = client.put('/api/cart/items/v1/', {'quantity': 3}, content_type='application/json').json()
    assert data['totals']['itemCount'] == 3
    data = client.delete('/api/cart/').json()
    assert data['cart']['items'] == []


def test_add_unknown_item(client):
    response = client.post('/api/cart/items/', {'itemId': 'nope'}, content_type='application/json')
    assert response.status_code == 404


def test_add_unavailable_item(client, hub):
    hub.update_menu_item('v1', {'is_available': False})
    response = client.post('/api/cart/items/', {'itemId': 'v1'}, content_type='application/json')
    assert response.status_code == 400


def test_coupon_apply_and_reject(client):
    add(client, 'v1', times=2)
    response = client.post('/api/cart/coupon/', {'code': 'flash20'}, content_type='application/json')
    assert response.status_code == 400
    assert response.json()['error'] == 'Minimum order amount is ₹500'

    response = client.post('/api/cart/coupon/', {'code': 'FLAT50'}, content_type='application/json')
    assert response.status_code == 200
    data = response.json()
    assert data['message'] == '₹50 discount applied!'
    assert data['cart']['couponCode'] == 'FLAT50'
    # 398 - 50 = 348 >= 300
    assert data['totals']['total'] == 348

    data = client.delete('/api/cart/coupon/').json()
    assert data['totals']['discount'] == 0


def test_checkout_validation_errors(client):
    add(client, 'v1')
    response = client.post('/api/checkout/', {'customer': {**CUSTOMER, 'phone': '12345'}},
                           content_type='application/json')
    assert response.status_code == 400
    assert response.json()['errors'] == {'phone': 'Enter a valid 10-digit phone number'}


def test_checkout_rejects_coupon_the_cart_no_longer_qualifies_for(client, hub):
    add(client, 'v1', times=2)
    assert client.post('/api/cart/coupon/', {'code': 'FLAT50'}, content_type='application/json').status_code == 200
    client.post('/api/cart/items/v1/remove/')

    response = client.post('/api/checkout/', {'customer': CUSTOMER, 'paymentMethod': 'cod'},
                           content_type='application/json')
    assert response.status_code == 400
    assert response.json()['errors'] == {'coupon': 'Minimum order amount is ₹300'}
    assert hub.orders == []


def test_checkout_empty_cart(client):
    response = client.post('/api/checkout/', {'customer': CUSTOMER}, content_type='application/json')
    assert response.status_code == 400
    assert 'cart' in response.json()['errors']


def test_cod_checkout_places_order(client, hub):
    add(client, 'v2')
    response = client.post('/api/checkout/', {'customer': CUSTOMER, 'paymentMethod': 'cod'},
                           content_type='application/json')
    assert response.status_code == 201
    order = response.json()['order']
    assert order['id'].startswith('FP')
    assert order['total'] == 314
    assert order['statusLabel'] == 'Order Received'
    assert hub.get_order(order['id'])['status'] == 'new'
    assert hub.new_order_ids == [order['id']]

    assert client.get('/api/cart/').json()['cart']['items'] == []
    notes = client.get('/api/notifications/').json()
    assert notes['unreadCount'] == 1
    assert notes['results'][0]['title'] == 'Order Confirmed!'
    assert notes['toasts'][0]['message'] == f'Order #{order["id"]} placed successfully!'


def test_upi_checkout_waits_for_confirmation(client, hub):
    add(client, 'v4')
    response = client.post('/api/checkout/', {'customer': CUSTOMER, 'paymentMethod': 'upi'},
                           content_type='application/json')
    assert response.status_code == 200
    pending = response.json()
    assert pending['upiUrl'].startswith('upi://pay?pa=flashpizza@upi')
    assert pending['amount'] == 329
    assert hub.orders == []

    qr = client.get('/api/checkout/upi-qr/')
    assert qr['Content-Type'] == 'image/png'

    response = client.post('/api/checkout/confirm/')
    assert response.status_code == 201
    order = response.json()['order']
    assert order['id'] == pending['pendingOrderId']
    assert order['paymentMethod'] == 'upi'
    assert client.post('/api/checkout/confirm/').status_code == 400


def test_order_tracking_and_history(client, admin_client, hub):
    add(client, 'v1', times=2)
    order_id = client.post('/api/checkout/', {'customer': CUSTOMER},
                           content_type='application/json').json()['order']['id']

    data = client.get('/api/orders/active/').json()
    assert data['order']['id'] == order_id
    assert data['changed'] is False

    admin_client.post(f'/api/admin/orders/{order_id}/prepare/')
    data = client.get('/api/orders/active/').json()
    assert data['changed'] is True
    assert data['order']['status'] == 'preparing'
    notes = client.get('/api/notifications/').json()['results']
    assert notes[0]['title'] == 'Being Prepared'
    assert len(notes) == 1

    history = client.get('/api/orders/history/').json()['results']
    assert [o['id'] for o in history] == [order_id]

    admin_client.post(f'/api/admin/orders/{order_id}/complete/')
    data = client.get('/api/orders/active/').json()
    assert data['order']['status'] == 'completed'
    assert data['order']['estimatedDelivery'] is None
    assert client.get('/api/notifications/').json()['results'] == []


def test_reorder_adds_quantities(client, hub):
    add(client, 'v1', times=2)
    add(client, 'b1')
    order_id = client.post('/api/checkout/', {'customer': CUSTOMER},
                           content_type='application/json').json()['order']['id']
    data = client.post(f'/api/orders/{order_id}/reorder/').json()
    assert data['totals']['itemCount'] == 3
    assert client.post('/api/orders/FPNOPE/reorder/').status_code == 404


def test_admin_gate(client):
    assert client.get('/api/admin/orders/').status_code == 401
    response = client.post('/api/admin/login/', {'password': 'wrong'}, content_type='application/json')
    assert response.status_code == 401
    assert client.get('/api/admin/session/').json()['isAdmin'] is False


def test_admin_logout(admin_client):
    assert admin_client.get('/api/admin/session/').json()['isAdmin'] is True
    admin_client.post('/api/admin/logout/')
    assert admin_client.get('/api/admin/orders/').status_code == 401


def test_admin_order_board_and_transitions(admin_client, hub, order_factory):
    hub.place_order(order_factory('FPAAA111'))
    data = admin_client.get('/api/admin/orders/').json()
    assert data['newOrderIds'] == ['FPAAA111']
    assert data['alarmPlaying'] is True
    assert data['results'][0]['nextActions'] == ['preparing', 'cancelled']

    response = admin_client.post('/api/admin/orders/FPAAA111/prepare/')
    assert response.json()['message'] == 'Order #AAA111 marked as Preparing'
    assert hub.alarm.is_playing is False

    # Out of sequence moves are accepted.
    response = admin_client.post('/api/admin/orders/FPAAA111/complete/')
    assert response.json()['order']['status'] == 'completed'
    assert admin_client.post('/api/admin/orders/FPAAA111/explode/').status_code == 400
    assert admin_client.post('/api/admin/orders/FPNOPE/cancel/').status_code == 404


def test_admin_acknowledge(admin_client, hub, order_factory):
    hub.place_order(order_factory('FP1'))
    hub.place_order(order_factory('FP2'))
    assert admin_client.post('/api/admin/orders/FP1/acknowledge/').json()['newOrderIds'] == ['FP2']
    assert admin_client.post('/api/admin/orders/acknowledge-all/').json()['newOrderIds'] == []


def test_admin_menu_crud(admin_client, hub):
    response = admin_client.post('/api/admin/menu/', {'name': 'Farmhouse', 'price': 319, 'category': 'veg'},
                                 content_type='application/json')
    assert response.status_code == 201
    item = response.json()['item']
    assert item['id'].startswith('item_')
    assert item['image'].startswith('https://')
    assert hub.get_menu_item(item['id'])['name'] == 'Farmhouse'

    response = admin_client.patch(f'/api/admin/menu/{item["id"]}/', {'price': 329},
                                  content_type='application/json')
    assert response.json()['item']['price'] == 329

    bad = admin_client.post('/api/admin/menu/', {'name': 'X', 'price': 0, 'category': 'dessert'},
                            content_type='application/json')
    assert bad.status_code == 400
    assert set(bad.json()['errors']) == {'price', 'category'}

    assert admin_client.delete(f'/api/admin/menu/{item["id"]}/').status_code == 200
    assert hub.get_menu_item(item['id']) is None


def test_admin_coupon_crud(admin_client, hub):
    response = admin_client.post('/api/admin/coupons/', {'code': 'pizza10', 'type': 'percentage', 'value': 10},
                                 content_type='application/json')
    assert response.status_code == 201
    assert response.json()['coupon']['code'] == 'PIZZA10'
    assert hub.get_coupon('PIZZA10')['expires_at'] is not None

    duplicate = admin_client.post('/api/admin/coupons/', {'code': 'Pizza10', 'type': 'flat', 'value': 5},
                                  content_type='application/json')
    assert duplicate.status_code == 400

    response = admin_client.patch('/api/admin/coupons/pizza10/', {'isActive': False},
                                  content_type='application/json')
    assert response.json()['coupon']['isActive'] is False
    assert admin_client.delete('/api/admin/coupons/PIZZA10/').status_code == 200
    assert admin_client.delete('/api/admin/coupons/PIZZA10/').status_code == 404


def test_admin_settings(admin_client, hub):
    response = admin_client.patch('/api/admin/settings/', {'isOpen': False, 'deliveryCharge': 40},
                                  content_type='application/json')
    assert response.json()['store']['isOpen'] is False
    assert hub.store_config['delivery_charge'] == 40


def test_admin_banners(admin_client, client, hub):
    assert admin_client.post('/api/admin/banners/', {'title': 'No image'},
                             content_type='application/json').status_code == 400
    first = admin_client.post('/api/admin/banners/', {'image': 'a.jpg', 'title': 'A'},
                              content_type='application/json').json()['results'][0]
    results = admin_client.post('/api/admin/banners/', {'image': 'b.jpg', 'title': 'B'},
                                content_type='application/json').json()['results']
    second = results[1]
    assert [b['order'] for b in results] == [0, 1]

    moved = admin_client.post(f'/api/admin/banners/{second["id"]}/move/', {'direction': 'up'},
                              content_type='application/json').json()['results']
    assert [b['id'] for b in moved] == [second['id'], first['id']]
    assert admin_client.post(f'/api/admin/banners/{second["id"]}/move/', {'direction': 'up'},
                             content_type='application/json').status_code == 400

    toggled = admin_client.post(f'/api/admin/banners/{second["id"]}/toggle/').json()
    assert toggled['message'] == 'Banner disabled'
    assert [b['id'] for b in client.get('/api/banners/').json()['results']] == [first['id']]

    admin_client.delete(f'/api/admin/banners/{first["id"]}/')
    assert [b['id'] for b in client.get('/api/banners/').json()['results']] == ['legacy']


def test_notification_endpoints(client):
    add(client, 'v1')
    client.post('/api/checkout/', {'customer': CUSTOMER}, content_type='application/json')
    note_id = client.get('/api/notifications/').json()['results'][0]['id']
    assert client.post(f'/api/notifications/{note_id}/').json()['unreadCount'] == 0
    assert client.delete(f'/api/notifications/{note_id}/').json()['results'] == []
    assert client.delete('/api/notifications/').json()['unreadCount'] == 0
