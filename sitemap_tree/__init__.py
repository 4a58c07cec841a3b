"""
Sitemap Tree - sitemaps.org XML parsing into an immutable tree

Modules:
- config: Configuration loading and validation
- models: Sitemap / SitemapItem value objects
- field_parsers: URI, date, change frequency and priority parsing
- sitemap_parser: Document classification and tree building
- sitemap_writer: Serialization back to sitemap XML
- sitemap_loader: Expansion of index references through a caller-supplied fetch
- data_processor: pandas / CSV export of parsed trees
"""

__version__ = "1.0.0"

from sitemap_tree.errors import MalformedDocumentError, SitemapError, UnrecognizedRootElementError
from sitemap_tree.models import ChangeFrequency, Sitemap, SitemapItem, SitemapType
from sitemap_tree.sitemap_parser import (
    SitemapParser,
    build_sitemap_item,
    build_sitemap_reference,
    parse,
)

__all__ = [
    "ChangeFrequency",
    "MalformedDocumentError",
    "Sitemap",
    "SitemapError",
    "SitemapItem",
    "SitemapParser",
    "SitemapType",
    "UnrecognizedRootElementError",
    "build_sitemap_item",
    "build_sitemap_reference",
    "parse",
]
