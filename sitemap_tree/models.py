"""
1.0 Sitemap Models
Immutable value objects produced by the parser.

- ChangeFrequency: the <changefreq> hint
- SitemapType: tag telling index, url set and not-yet-loaded references apart
- SitemapItem: one <url> entry of a url set
- Sitemap: one node of the tree (index, url set or reference)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional, Tuple


class ChangeFrequency(str, Enum):
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class SitemapType(str, Enum):
    INDEX = "sitemapindex"
    ITEMS = "urlset"
    NOT_LOADED = "not_loaded"


@dataclass(frozen=True)
class SitemapItem:
    """
    2.0 SitemapItem
    A single page URL with its optional metadata.
    """

    location: str
    last_modified: Optional[datetime] = None
    change_frequency: Optional[ChangeFrequency] = None
    priority: Optional[float] = None

    def __post_init__(self):
        if not self.location:
            raise ValueError("SitemapItem requires a location")
        if self.priority is not None and not 0.0 <= self.priority <= 1.0:
            raise ValueError(f"Priority must be within [0.0, 1.0], got {self.priority}")


@dataclass(frozen=True)
class Sitemap:
    """
    3.0 Sitemap
    A node of the parsed tree.

    Which collection may be populated depends on sitemap_type:
    INDEX nodes hold child sitemaps, ITEMS nodes hold URL entries and
    NOT_LOADED references (entries of an index) hold neither.
    Use the index(), urlset() and reference() constructors.
    """

    location: Optional[str]
    sitemap_type: SitemapType
    last_modified: Optional[datetime] = None
    children: Tuple["Sitemap", ...] = field(default_factory=tuple)
    items: Tuple[SitemapItem, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Frozen, so normalize collections through object.__setattr__
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(self, "items", tuple(self.items))

        if self.sitemap_type is SitemapType.INDEX and self.items:
            raise ValueError("An index sitemap cannot hold URL items")
        if self.sitemap_type is SitemapType.ITEMS and self.children:
            raise ValueError("A url set sitemap cannot hold child sitemaps")
        if self.sitemap_type is SitemapType.NOT_LOADED and (self.children or self.items):
            raise ValueError("A sitemap reference cannot hold children or items")

    @classmethod
    def index(
        cls,
        location: Optional[str],
        children: Iterable["Sitemap"] = (),
        last_modified: Optional[datetime] = None,
    ) -> "Sitemap":
        return cls(location, SitemapType.INDEX, last_modified, children=tuple(children))

    @classmethod
    def urlset(
        cls,
        location: Optional[str],
        items: Iterable[SitemapItem] = (),
        last_modified: Optional[datetime] = None,
    ) -> "Sitemap":
        return cls(location, SitemapType.ITEMS, last_modified, items=tuple(items))

    @classmethod
    def reference(cls, location: str, last_modified: Optional[datetime] = None) -> "Sitemap":
        if not location:
            raise ValueError("A sitemap reference requires a location")
        return cls(location, SitemapType.NOT_LOADED, last_modified)

    @property
    def is_loaded(self) -> bool:
        return self.sitemap_type is not SitemapType.NOT_LOADED
