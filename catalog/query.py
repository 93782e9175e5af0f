"""Search, category filtering and pagination over a cache snapshot."""

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from catalog.errors import UnknownCategory
from catalog.models import CacheSnapshot, Product

__all__ = [
    "CATEGORY_TAGS",
    "CATEGORY_NAMES",
    "ALL_CATEGORY",
    "Page",
    "matches_search",
    "matches_category",
    "filter_products",
    "paginate",
    "build_envelope",
    "get_categories",
]

ALL_CATEGORY = "all"

# Category key -> tag substrings. A product is in the category when any of
# its tags contains any of these (case-insensitive).
CATEGORY_TAGS: Dict[str, Tuple[str, ...]] = {
    ALL_CATEGORY: (),
    "tshirts": ("T-shirts", "Tshirts"),
    "sweatshirts": ("Sweatshirts",),
    "hoodies": ("Hoodies",),
    "stickers": ("Kiss-Cut Stickers", "Laptop Stickers", "Stickers"),
    "art": ("Unique Wall Art", "Room Decor", "Rage Room Art"),
}

CATEGORY_NAMES: Dict[str, str] = {
    ALL_CATEGORY: "All Products",
    "tshirts": "T-Shirts",
    "sweatshirts": "Sweatshirts",
    "hoodies": "Hoodies",
    "stickers": "Stickers",
    "art": "Wall Art",
}


@dataclass(frozen=True)
class Page:
    """One page of filtered products plus pagination metadata."""

    items: Tuple[Product, ...]
    total: int
    per_page: int
    current_page: int
    last_page: int
    first_index: int
    last_index: int


def matches_search(product: Product, term: str) -> bool:
    """Case-insensitive substring match on the title or any tag."""
    needle = (term or "").lower()
    if not needle:
        return True
    if needle in product.title.lower():
        return True
    return any(needle in tag.lower() for tag in product.tags)


def matches_category(product: Product, category: str, category_tags: Optional[Dict[str, Tuple[str, ...]]] = None) -> bool:
    """True if any product tag contains any of the category's tag substrings.

    Raises:
        UnknownCategory: If the category key is not registered
    """
    registry = category_tags if category_tags is not None else CATEGORY_TAGS
    key = (category or ALL_CATEGORY).lower()
    if key == ALL_CATEGORY:
        return True
    if key not in registry:
        raise UnknownCategory(f"Unknown category: {category}")

    wanted = [t.lower() for t in registry[key]]
    return any(w in tag.lower() for tag in product.tags for w in wanted)


def filter_products(
    products: Sequence[Product],
    search: str = "",
    category: str = ALL_CATEGORY,
) -> List[Product]:
    """Apply search and category filters, preserving snapshot order."""
    key = (category or ALL_CATEGORY).lower()
    if key != ALL_CATEGORY and key not in CATEGORY_TAGS:
        raise UnknownCategory(f"Unknown category: {category}")
    return [p for p in products if matches_category(p, key) and matches_search(p, search)]


def paginate(items: Sequence[Product], page: int, page_size: int) -> Page:
    """Slice one 1-based page out of items.

    Pages past the end are empty rather than an error.
    """
    if page < 1 or page_size < 1:
        raise ValueError(f"page and page_size must be positive, got page={page} page_size={page_size}")

    total = len(items)
    start = (page - 1) * page_size
    page_items = tuple(items[start:start + page_size])

    return Page(
        items=page_items,
        total=total,
        per_page=page_size,
        current_page=page,
        last_page=math.ceil(total / page_size),
        first_index=min(start + 1, total),
        last_index=min(start + len(page_items), total),
    )


def build_envelope(page: Page, snapshot: CacheSnapshot, served_fresh: bool) -> Dict[str, Any]:
    """Shape a page into the JSON response envelope."""
    return {
        "data": [p.to_dict() for p in page.items],
        "total": page.total,
        "per_page": page.per_page,
        "current_page": page.current_page,
        "last_page": page.last_page,
        "from": page.first_index,
        "to": page.last_index,
        "prev_page_url": f"/?page={page.current_page - 1}" if page.current_page > 1 else None,
        "next_page_url": f"/?page={page.current_page + 1}" if page.current_page < page.last_page else None,
        "cached_at": snapshot.fetched_at_iso(),
        "cache_hit": served_fresh,
        "refreshing": snapshot.refreshing,
    }


def get_categories() -> List[Dict[str, Any]]:
    """Registered categories in display order."""
    return [
        {"key": key, "display_name": CATEGORY_NAMES.get(key, key.title()), "tags": list(tags)}
        for key, tags in CATEGORY_TAGS.items()
    ]
