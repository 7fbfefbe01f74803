"""
Built-in dataset written into an empty store on first run.
Values are in storage (camelCase) form so they can be encoded as-is.
"""

STORE_CONFIG = {
    'name': 'Flash Pizza',
    'phone': '+919876543210',
    'upiId': 'flashpizza@upi',
    'location': {
        'lat': 12.9716,
        'lng': 77.5946,
    },
    'maxDeliveryRadius': 5,
    'freeDeliveryThreshold': 300,
    'deliveryCharge': 35,
    'bannerImage': 'https://images.unsplash.com/photo-1513104890138-7c749659a591?w=1200&q=80',
    'offerText': 'Flat 20% OFF on orders above ₹500!',
    'isOpen': True,
    'banners': [],
}


def _item(id, name, price, category, description, rating, popularity, image):
    return {
        'id': id,
        'name': name,
        'price': price,
        'image': f'https://images.unsplash.com/{image}?w=400&q=80',
        'category': category,
        'description': description,
        'isAvailable': True,
        'rating': rating,
        'popularity': popularity,
    }


MENU_ITEMS = [
    # Beverages
    _item('b1', 'Coca-Cola', 60, 'beverages', 'Chilled 500ml bottle', 4.5, 90, 'photo-1554866585-cd94860890b7'),
    _item('b2', 'Fresh Lime Soda', 49, 'beverages', 'Refreshing lime soda with mint', 4.3, 85, 'photo-1513558161293-cdaf765ed2fd'),
    _item('b3', 'Mango Shake', 89, 'beverages', 'Thick and creamy mango shake', 4.7, 95, 'photo-1546173159-315724a31696'),
    # Veg
    _item('v1', 'Margherita Pizza', 199, 'veg', 'Classic tomato sauce with mozzarella cheese', 4.5, 95, 'photo-1574071318508-1cdbab80d002'),
    _item('v2', 'Paneer Tikka Pizza', 279, 'veg', 'Spicy paneer with bell peppers and onions', 4.6, 88, 'photo-1565299624946-b28f40a0ae38'),
    _item('v3', 'Veggie Supreme', 299, 'veg', 'Loaded with fresh vegetables and herbs', 4.4, 82, 'photo-1571407970349-bc81e7e96d47'),
    _item('v4', 'Cheese Burst', 329, 'veg', 'Extra cheese stuffed crust', 4.8, 98, 'photo-1588315029754-2dd089d39a1a'),
    # Non-veg
    _item('nv1', 'Chicken Tikka Pizza', 329, 'non-veg', 'Tandoori chicken with special spices', 4.7, 92, 'photo-1565299507177-b0ac66763828'),
    _item('nv2', 'Pepperoni Classic', 349, 'non-veg', 'Classic pepperoni with mozzarella', 4.5, 90, 'photo-1628840042765-356cda07504e'),
    _item('nv3', 'BBQ Chicken', 379, 'non-veg', 'Smoky BBQ chicken with caramelized onions', 4.6, 87, 'photo-1594007654729-407eedc4be65'),
    _item('nv4', 'Meat Feast', 429, 'non-veg', 'Loaded with chicken, pepperoni & sausage', 4.8, 94, 'photo-1520201163981-8cc95007dd2a'),
    # Combos
    _item('c1', 'Party Pack (2 Medium)', 499, 'combos', '2 medium pizzas of your choice', 4.6, 85, 'photo-1593560708920-61dd98c46a4e'),
    _item('c2', 'Family Feast', 799, 'combos', '2 large pizzas + garlic bread + coke', 4.7, 91, 'photo-1606502281004-f86cf1282e29'),
    _item('c3', 'Date Night Combo', 599, 'combos', '1 large pizza + pasta + 2 drinks', 4.5, 88, 'photo-1513104890138-7c749659a591'),
]


COUPONS = [
    {
        'code': 'FLASH20',
        'type': 'percentage',
        'value': 20,
        'minOrder': 500,
        'maxDiscount': 150,
        'isActive': True,
        'expiresAt': '2030-12-31T00:00:00Z',
    },
    {
        'code': 'FLAT50',
        'type': 'flat',
        'value': 50,
        'minOrder': 300,
        'isActive': True,
        'expiresAt': '2030-12-31T00:00:00Z',
    },
    {
        'code': 'WELCOME',
        'type': 'percentage',
        'value': 15,
        'minOrder': 200,
        'maxDiscount': 100,
        'isActive': True,
        'expiresAt': '2030-12-31T00:00:00Z',
    },
]

ORDERS = []
