"""Restaurant / menu constants (cache TTLs in seconds)."""

RESTAURANT_LIST_CACHE_TTL = 300
RESTAURANT_DETAIL_CACHE_TTL = 300
MENU_CACHE_TTL = 300
MENU_ITEM_CACHE_TTL = 600
MENU_CATEGORIES_CACHE_TTL = 1800

MAX_RATING = 5
