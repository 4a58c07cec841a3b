import logging
from typing import Any, Dict, List, Optional

from lxml import etree  # Using lxml for robust parsing and namespace handling

from sitemap_tree.config import resolve_config
from sitemap_tree.errors import MalformedDocumentError, SitemapError, UnrecognizedRootElementError
from sitemap_tree.field_parsers import (
    max_date,
    parse_change_frequency,
    parse_datetime,
    parse_priority,
    resolve_uri,
)
from sitemap_tree.models import Sitemap, SitemapItem

logger = logging.getLogger(__name__)

SITEMAP_NS = 'http://www.sitemaps.org/schemas/sitemap/0.9'


def _sm(localname: str) -> str:
    return etree.QName(SITEMAP_NS, localname).text


SITEMAPINDEX_TAG = _sm('sitemapindex')
SITEMAP_TAG = _sm('sitemap')
URLSET_TAG = _sm('urlset')
URL_TAG = _sm('url')
LOC_TAG = _sm('loc')
LASTMOD_TAG = _sm('lastmod')
CHANGEFREQ_TAG = _sm('changefreq')
PRIORITY_TAG = _sm('priority')


def build_sitemap_reference(
    base_location: Optional[str],
    raw_location: Optional[str],
    raw_last_modified: Optional[str] = None,
    *,
    lenient_dates: bool = True,
) -> Optional[Sitemap]:
    """
    Builds a not-yet-loaded reference to a child sitemap from raw field text.

    Returns None when the location is blank or does not resolve to an
    absolute URI; callers skip such entries.
    """
    if not raw_location:
        return None
    location = resolve_uri(base_location, raw_location)
    if location is None:
        return None
    return Sitemap.reference(location, parse_datetime(raw_last_modified, lenient=lenient_dates))


def build_sitemap_item(
    base_location: Optional[str],
    raw_location: Optional[str],
    raw_last_modified: Optional[str] = None,
    raw_change_frequency: Optional[str] = None,
    raw_priority: Optional[str] = None,
    *,
    lenient_dates: bool = True,
) -> Optional[SitemapItem]:
    """
    Builds a SitemapItem from raw field text.

    The location rule matches build_sitemap_reference. Every other field is
    optional on its own: a bad <priority> leaves priority absent, it does not
    drop the entry.
    """
    if not raw_location:
        return None
    location = resolve_uri(base_location, raw_location)
    if location is None:
        return None
    return SitemapItem(
        location=location,
        last_modified=parse_datetime(raw_last_modified, lenient=lenient_dates),
        change_frequency=parse_change_frequency(raw_change_frequency),
        priority=parse_priority(raw_priority),
    )


class SitemapParser:
    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Args:
            config: Optional settings (see sitemap_tree.config.DEFAULT_CONFIG):
                - lenient_dates: dateutil fallback for non-W3C <lastmod>
                - huge_tree: lift libxml2 size limits
        """
        self.config = resolve_config(config)
        self.lenient_dates = self.config["lenient_dates"]
        self.huge_tree = self.config["huge_tree"]
        logger.debug(f"SitemapParser initialized: lenient_dates={self.lenient_dates}, huge_tree={self.huge_tree}")

    def parse(self, content: Optional[str], base_location: Optional[str] = None) -> Optional[Sitemap]:
        """
        Parses the given XML sitemap content.

        Determines if it's a sitemap index or a URL set and builds the tree.

        Args:
            content: The XML content of the sitemap as a string.
            base_location: The URL this sitemap was fetched from. Relative
                <loc> values are resolved against it and it becomes the
                location of the returned node.

        Returns:
            The parsed Sitemap, or None when the document is empty, not
            well-formed, or has an unrecognized root element.
        """
        try:
            return self.parse_strict(content, base_location)
        except SitemapError as e:
            logger.error(f"Could not parse sitemap from {base_location or '<no location>'}: {e}")
            return None

    def parse_strict(self, content: Optional[str], base_location: Optional[str] = None) -> Sitemap:
        """
        Same as parse() but document-level failures raise.

        Raises:
            MalformedDocumentError: empty content or XML that is not well-formed
            UnrecognizedRootElementError: root is not <urlset> or <sitemapindex>
        """
        root = self._load_root(content)

        if root.tag == SITEMAPINDEX_TAG:
            logger.info(f"Parsing as sitemap index: {base_location}")
            return self._parse_index(root, base_location)
        if root.tag == URLSET_TAG:
            logger.info(f"Parsing as URL set: {base_location}")
            return self._parse_urlset(root, base_location)

        raise UnrecognizedRootElementError(str(root.tag))

    def _load_root(self, content: Optional[str]) -> etree._Element:
        # Some servers send a BOM or a blank line ahead of the XML declaration
        text = (content or "").lstrip("\ufeff").strip()
        if not text:
            raise MalformedDocumentError("Empty XML content")

        # lxml requires bytes once an encoding declaration may be present;
        # the str is already decoded, so override whatever the declaration says
        parser = etree.XMLParser(
            encoding='utf-8',
            resolve_entities=False,
            no_network=True,
            huge_tree=self.huge_tree,
        )
        try:
            return etree.fromstring(text.encode('utf-8'), parser=parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            raise MalformedDocumentError(f"XMLSyntaxError: {e}") from e

    def _parse_index(self, root: etree._Element, base_location: Optional[str]) -> Sitemap:
        """Builds an index node from the <sitemap> children of <sitemapindex>."""
        sitemaps: List[Sitemap] = []
        skipped = 0
        for sitemap_element in root.iterchildren(SITEMAP_TAG):
            loc = _child_text(sitemap_element, LOC_TAG)
            if loc is None or not loc.strip():
                skipped += 1
                continue

            sitemap = build_sitemap_reference(
                base_location,
                loc,
                _child_text(sitemap_element, LASTMOD_TAG),
                lenient_dates=self.lenient_dates,
            )
            if sitemap is None:
                logger.warning(f"Skipping sitemap entry with unresolvable <loc>: {loc.strip()[:200]}")
                skipped += 1
                continue
            sitemaps.append(sitemap)

        logger.debug(f"Extracted {len(sitemaps)} sitemap links from index ({skipped} skipped).")
        return Sitemap.index(base_location, sitemaps, max_date(s.last_modified for s in sitemaps))

    def _parse_urlset(self, root: etree._Element, base_location: Optional[str]) -> Sitemap:
        """Builds a url set node from the <url> children of <urlset>."""
        items: List[SitemapItem] = []
        skipped = 0
        for url_element in root.iterchildren(URL_TAG):
            loc = _child_text(url_element, LOC_TAG)
            if loc is None or not loc.strip():
                # A URL entry without a <loc> is invalid according to sitemap protocol, skip it.
                skipped += 1
                continue

            item = build_sitemap_item(
                base_location,
                loc,
                _child_text(url_element, LASTMOD_TAG),
                _child_text(url_element, CHANGEFREQ_TAG),
                _child_text(url_element, PRIORITY_TAG),
                lenient_dates=self.lenient_dates,
            )
            if item is None:
                logger.warning(f"Skipping URL entry with unresolvable <loc>: {loc.strip()[:200]}")
                skipped += 1
                continue
            items.append(item)

        logger.debug(f"Extracted {len(items)} URL entries from urlset ({skipped} skipped).")
        return Sitemap.urlset(base_location, items, max_date(i.last_modified for i in items))


def _child_text(element: etree._Element, tag: str) -> Optional[str]:
    """String value of the first direct child with the given tag, None if absent."""
    child = element.find(tag)
    if child is None:
        return None
    return str(child.xpath('string()'))


_default_parser = SitemapParser()


def parse(content: Optional[str], base_location: Optional[str] = None) -> Optional[Sitemap]:
    """Parses sitemap XML with the default settings. See SitemapParser.parse."""
    return _default_parser.parse(content, base_location)


# Example usage (for testing this module directly)
if __name__ == '__main__':
    logging.basicConfig(level=logging.DEBUG,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    parser = SitemapParser()

    sitemap_index_xml = """
    <?xml version="1.0" encoding="UTF-8"?>
    <sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
       <sitemap>
          <loc>http://www.example.com/sitemap1.xml.gz</loc>
          <lastmod>2004-10-01T18:23:17+00:00</lastmod>
       </sitemap>
       <sitemap>
          <loc>/sitemap2.xml.gz</loc>
          <lastmod>2005-01-01</lastmod>
       </sitemap>
    </sitemapindex>
    """
    logger.info("--- Testing Sitemap Index Parsing ---")
    parsed_index = parser.parse(sitemap_index_xml, "http://www.example.com/sitemap_index.xml")
    logger.info(f"Parsed Index Result: {parsed_index}")
    assert parsed_index is not None and len(parsed_index.children) == 2
    assert parsed_index.children[1].location == "http://www.example.com/sitemap2.xml.gz"

    urlset_xml = """
    <?xml version="1.0" encoding="UTF-8"?>
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
       <url>
          <loc>http://www.example.com/</loc>
          <lastmod>2005-01-01</lastmod>
          <changefreq>monthly</changefreq>
          <priority>0.8</priority>
       </url>
       <url>
          <loc>http://www.example.com/catalog?item=12&amp;desc=vacation_hawaii</loc>
          <changefreq>weekly</changefreq>
       </url>
    </urlset>
    """
    logger.info("--- Testing URL Set Parsing ---")
    parsed_urlset = parser.parse(urlset_xml, "http://www.example.com/urlset.xml")
    logger.info(f"Parsed URL Set Result: {parsed_urlset}")
    assert parsed_urlset is not None and len(parsed_urlset.items) == 2

    logger.info("--- Testing Malformed XML Parsing ---")
    assert parser.parse("<urlset><url><loc>http://bad.com</loc></badurl></urlset>") is None

    logger.info("SitemapParser testing complete.")
