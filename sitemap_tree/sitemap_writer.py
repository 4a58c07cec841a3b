"""
Sitemap Writer Module
Serializes a parsed tree back into sitemaps.org XML.

Output re-parses through SitemapParser into an equal tree when the same
base location is supplied.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from lxml import etree

from sitemap_tree.models import Sitemap, SitemapItem, SitemapType
from sitemap_tree.sitemap_parser import (
    CHANGEFREQ_TAG,
    LASTMOD_TAG,
    LOC_TAG,
    PRIORITY_TAG,
    SITEMAP_NS,
    SITEMAP_TAG,
    SITEMAPINDEX_TAG,
    URL_TAG,
    URLSET_TAG,
)

logger = logging.getLogger(__name__)


def format_lastmod(value: datetime) -> str:
    """
    W3C datetime in UTC.

    Sub-second values use the seven digit fraction layout so they go back
    through the strict date formats on re-parse.
    """
    value = value.astimezone(timezone.utc) if value.tzinfo else value
    text = value.replace(tzinfo=None).isoformat(timespec="seconds")
    if value.microsecond:
        text += f".{value.microsecond:06d}0"
    return text + "+00:00"


def format_priority(value: float) -> str:
    # Plain decimal notation, never exponent form ("1e-05")
    return format(Decimal(repr(float(value))), "f")


def _add_text(parent: etree._Element, tag: str, text: Optional[str]) -> None:
    if text is None:
        return
    etree.SubElement(parent, tag).text = text


def _append_item(urlset: etree._Element, item: SitemapItem) -> None:
    url = etree.SubElement(urlset, URL_TAG)
    _add_text(url, LOC_TAG, item.location)
    if item.last_modified is not None:
        _add_text(url, LASTMOD_TAG, format_lastmod(item.last_modified))
    if item.change_frequency is not None:
        _add_text(url, CHANGEFREQ_TAG, item.change_frequency.value)
    if item.priority is not None:
        _add_text(url, PRIORITY_TAG, format_priority(item.priority))


def _append_sitemap(index: etree._Element, sitemap: Sitemap) -> None:
    entry = etree.SubElement(index, SITEMAP_TAG)
    _add_text(entry, LOC_TAG, sitemap.location)
    if sitemap.last_modified is not None:
        _add_text(entry, LASTMOD_TAG, format_lastmod(sitemap.last_modified))


def to_element(sitemap: Sitemap) -> etree._Element:
    """Builds the <sitemapindex> or <urlset> element for a loaded sitemap."""
    nsmap = {None: SITEMAP_NS}
    if sitemap.sitemap_type is SitemapType.INDEX:
        root = etree.Element(SITEMAPINDEX_TAG, nsmap=nsmap)
        for child in sitemap.children:
            _append_sitemap(root, child)
        return root
    if sitemap.sitemap_type is SitemapType.ITEMS:
        root = etree.Element(URLSET_TAG, nsmap=nsmap)
        for item in sitemap.items:
            _append_item(root, item)
        return root
    raise ValueError(f"Cannot serialize a sitemap that has not been loaded: {sitemap.location}")


def to_xml(sitemap: Sitemap, pretty_print: bool = True) -> str:
    """Serializes a sitemap node to an XML document string with declaration."""
    root = to_element(sitemap)
    xml_bytes = etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=pretty_print)
    logger.debug(
        f"Serialized {sitemap.sitemap_type.value} {sitemap.location} "
        f"({len(sitemap.children) or len(sitemap.items)} entries, {len(xml_bytes):,} bytes)"
    )
    return xml_bytes.decode("utf-8")
