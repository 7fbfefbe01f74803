"""Customer-facing menu listing and promotional banners."""
from .constants import Category

SORT_DEFAULT = 'default'
SORT_PRICE_LOW = 'price-low'
SORT_PRICE_HIGH = 'price-high'
SORT_RATING = 'rating'
SORT_POPULARITY = 'popularity'
SORT_OPTIONS = (SORT_DEFAULT, SORT_PRICE_LOW, SORT_PRICE_HIGH, SORT_RATING, SORT_POPULARITY)

# Default ordering when browsing all categories: pizzas first, drinks last.
CATEGORY_PRIORITY = {
    Category.VEG: 1,
    Category.NON_VEG: 2,
    Category.COMBOS: 3,
    Category.BEVERAGES: 4,
}


def filter_menu(items, category=None, veg_only=False, min_rating=0, sort=SORT_DEFAULT):
    """
    Available items only, then category / veg-only / minimum-rating filters and a sort.
    veg_only keeps veg items and beverages.
    """
    result = [i for i in items if i.get('is_available')]
    if category and category != 'all':
        result = [i for i in result if i['category'] == category]
    if veg_only:
        result = [i for i in result if i['category'] in (Category.VEG, Category.BEVERAGES)]
    if min_rating:
        result = [i for i in result if (i.get('rating') or 0) >= min_rating]

    if sort == SORT_PRICE_LOW:
        result.sort(key=lambda i: i['price'])
    elif sort == SORT_PRICE_HIGH:
        result.sort(key=lambda i: i['price'], reverse=True)
    elif sort == SORT_RATING:
        result.sort(key=lambda i: i.get('rating') or 0, reverse=True)
    elif sort == SORT_POPULARITY:
        result.sort(key=lambda i: i.get('popularity') or 0, reverse=True)
    elif not category or category == 'all':
        result.sort(key=lambda i: CATEGORY_PRIORITY.get(i['category'], 5))
    return result


def active_banners(config):
    """
    Active banners ordered by their order field. Falls back to the legacy single
    banner image (with the offer text as title) when none are active.
    """
    if not config:
        return []
    banners = sorted(
        (b for b in config.get('banners') or [] if b.get('is_active')),
        key=lambda b: b.get('order', 0),
    )
    if not banners and config.get('banner_image'):
        return [{
            'id': 'legacy',
            'image': config['banner_image'],
            'title': config.get('offer_text', ''),
            'is_active': True,
            'order': 0,
        }]
    return banners


def reorder_banners(banners, banner_id, direction):
    """
    Move a banner one step 'up' or 'down' and renumber order 0..n-1.
    Returns the new list, or None when the move is not possible.
    """
    ordered = sorted(banners, key=lambda b: b.get('order', 0))
    index = next((i for i, b in enumerate(ordered) if b['id'] == banner_id), -1)
    if index < 0:
        return None
    new_index = index - 1 if direction == 'up' else index + 1
    if new_index < 0 or new_index >= len(ordered):
        return None
    ordered[index], ordered[new_index] = ordered[new_index], ordered[index]
    return [{**b, 'order': i} for i, b in enumerate(ordered)]
