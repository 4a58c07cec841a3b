"""
1.0 Sitemap Loader Module
Expands NOT_LOADED references found in a sitemap index.

The loader performs no I/O of its own. The caller hands in a fetch function
(url -> XML text or None), e.g. a requests session wrapper with its own
retry and timeout policy.

Key features:
- Recursive index traversal, bounded by max_depth
- Each location fetched at most once per load_tree() call
- Children that fail to load stay in the tree as references
"""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Set

from sitemap_tree.config import resolve_config
from sitemap_tree.field_parsers import max_date
from sitemap_tree.models import Sitemap, SitemapType
from sitemap_tree.sitemap_parser import SitemapParser

logger = logging.getLogger(__name__)

FetchFunction = Callable[[str], Optional[str]]


class SitemapLoader:
    """
    2.0 SitemapLoader Class
    Turns sitemap references into parsed trees through a caller-supplied fetch.
    """

    def __init__(
        self,
        fetch: FetchFunction,
        parser: Optional[SitemapParser] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        """
        2.1 Initialize the loader.

        Args:
            fetch: Returns the XML text at a URL, or None when it cannot be fetched
            parser: Parser to use (default: SitemapParser built from config)
            config: Configuration dictionary; only max_depth is read here
        """
        self.config = resolve_config(config)
        self.fetch = fetch
        self.parser = parser or SitemapParser(self.config)
        self.max_depth = self.config["max_depth"]

    def load(self, sitemap: Sitemap) -> Optional[Sitemap]:
        """
        2.2 Fetch and parse the document a sitemap points to.

        Args:
            sitemap: Usually a NOT_LOADED reference taken from an index

        Returns:
            The parsed node, or None if fetching or parsing failed
        """
        location = sitemap.location
        if not location:
            logger.error("Cannot load a sitemap without a location.")
            return None

        logger.info(f"Loading sitemap: {location}")
        try:
            xml_content = self.fetch(location)
        except Exception as e:
            logger.error(f"Fetch failed for {location}: {e}")
            return None

        if not xml_content:
            logger.warning(f"Failed to fetch XML content for {location}. Skipping.")
            return None

        loaded = self.parser.parse(xml_content, location)
        if loaded is None:
            return None

        # The index entry's <lastmod> is the best we have for a sitemap whose
        # own entries carry no timestamps
        if loaded.last_modified is None and sitemap.last_modified is not None:
            loaded = replace(loaded, last_modified=sitemap.last_modified)
        return loaded

    def load_tree(self, sitemap: Sitemap) -> Sitemap:
        """
        2.3 Load a sitemap and, for indexes, every child it references.

        Returns:
            A new tree. The input is returned unchanged if it cannot be loaded.
        """
        return self._load_branch(sitemap, depth=0, processed=set())

    def _load_branch(self, sitemap: Sitemap, depth: int, processed: Set[str]) -> Sitemap:
        if not sitemap.is_loaded:
            if sitemap.location in processed:
                logger.info(f"Already processed {sitemap.location}. Skipping.")
                return sitemap
            processed.add(sitemap.location)
            loaded = self.load(sitemap)
            if loaded is None:
                return sitemap
            sitemap = loaded
        elif sitemap.location:
            processed.add(sitemap.location)

        if sitemap.sitemap_type is not SitemapType.INDEX:
            return sitemap

        if depth >= self.max_depth:
            logger.warning(
                f"Max depth {self.max_depth} reached at {sitemap.location}. "
                f"Leaving {len(sitemap.children)} children unloaded."
            )
            return sitemap

        logger.info(f"Sitemap index {sitemap.location} contains {len(sitemap.children)} sub-sitemaps.")
        children: List[Sitemap] = [
            self._load_branch(child, depth + 1, processed) for child in sitemap.children
        ]
        return Sitemap.index(
            sitemap.location,
            children,
            max_date(child.last_modified for child in children),
        )
