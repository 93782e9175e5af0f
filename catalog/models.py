"""Data models for cached catalog products."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

__all__ = ["Product", "CacheSnapshot"]


@dataclass(frozen=True)
class Product:
    """A catalog product trimmed down to what listing pages need.

    Only the first upstream image is kept; the full image set is fetched
    from the catalog API when a single product is requested.
    """

    id: str
    title: str
    provider_id: int
    tags: List[str] = field(default_factory=list)
    image: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> Optional["Product"]:
        """Project an upstream product record.

        Returns None for records without an id or provider id, since those
        can never be matched or linked to.
        """
        product_id = raw.get("id")
        provider_id = raw.get("print_provider_id")
        if product_id is None or isinstance(provider_id, bool):
            return None
        # int() would truncate 39.7 to 39
        if isinstance(provider_id, float) and not provider_id.is_integer():
            return None
        try:
            provider_id = int(provider_id)
        except (TypeError, ValueError):
            return None

        tags = raw.get("tags") or []
        if not isinstance(tags, list):
            tags = []

        image = None
        images = raw.get("images") or []
        if isinstance(images, list) and images:
            first = images[0]
            if isinstance(first, Mapping):
                image = first.get("src") or None
            elif isinstance(first, str):
                image = first or None

        return cls(
            id=str(product_id),
            title=str(raw.get("title") or ""),
            provider_id=provider_id,
            tags=[str(t) for t in tags if t is not None],
            image=image,
            created_at=raw.get("created_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "tags": list(self.tags),
            "image": self.image,
            "print_provider_id": self.provider_id,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class CacheSnapshot:
    """Immutable view of the cached product set for one shop."""

    products: Tuple[Product, ...] = ()
    fetched_at: float = 0.0
    refreshing: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.products

    def age(self, now: float) -> float:
        return now - self.fetched_at

    def fetched_at_iso(self) -> Optional[str]:
        if not self.fetched_at:
            return None
        return datetime.fromtimestamp(self.fetched_at, tz=timezone.utc).isoformat()
