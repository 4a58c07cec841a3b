"""
Document-level errors raised by SitemapParser.parse_strict.

Entry-level problems (bad <loc>, unparseable <lastmod>, ...) never raise;
they are dropped or turned into absent fields by the parser.
"""

from typing import Optional


class SitemapError(Exception):
    """Base class for sitemap documents that cannot be turned into a tree."""


class MalformedDocumentError(SitemapError):
    """Content is empty or is not well-formed XML."""


class UnrecognizedRootElementError(SitemapError):
    """Well-formed XML whose root is neither <urlset> nor <sitemapindex>."""

    def __init__(self, tag: str, message: Optional[str] = None):
        self.tag = tag
        super().__init__(message or f"Unrecognized root element '{tag}'")
