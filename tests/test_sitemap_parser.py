"""
Parser tests - mock XML only, no network.

Run: pytest tests/test_sitemap_parser.py
"""

import logging
from datetime import datetime, timezone

import pytest

from sitemap_tree import (
    ChangeFrequency,
    MalformedDocumentError,
    SitemapParser,
    SitemapType,
    UnrecognizedRootElementError,
    build_sitemap_item,
    build_sitemap_reference,
    parse,
)

UTC = timezone.utc
BASE = "https://www.example.com/sitemap.xml"

URLSET_XML = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
    <url>
        <loc>https://www.example.com/</loc>
        <lastmod>2005-01-01</lastmod>
        <changefreq>monthly</changefreq>
        <priority>0.8</priority>
    </url>
    <url><loc>   </loc><lastmod>2030-01-01</lastmod></url>
    <url><lastmod>2030-01-01</lastmod></url>
    <url>
        <loc>/catalog?item=12&amp;desc=vacation_hawaii</loc>
        <lastmod>2004-12-23T18:00:15+00:00</lastmod>
        <changefreq>Weekly</changefreq>
    </url>
    <url>
        <loc><![CDATA[https://www.example.com/catalog?item=73&desc=vacation_new_zealand]]></loc>
        <lastmod>yesterday-ish</lastmod>
        <changefreq>sometimes</changefreq>
        <priority>high</priority>
    </url>
</urlset>"""

INDEX_XML = """<?xml version="1.0" encoding="UTF-8"?>
<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
    <sitemap><loc>https://www.example.com/sitemap-1.xml</loc><lastmod>2019-01-01</lastmod></sitemap>
    <sitemap><loc>/sitemap-2.xml</loc><lastmod>2020-06-01</lastmod></sitemap>
    <sitemap><loc></loc><lastmod>2030-01-01</lastmod></sitemap>
    <sitemap><loc>https://www.example.com/sitemap-3.xml</loc></sitemap>
</sitemapindex>"""


# =============================================================================
# 1. URL SETS
# =============================================================================


def test_urlset_keeps_entries_with_loc_in_document_order():
    sitemap = parse(URLSET_XML, BASE)
    assert sitemap.sitemap_type is SitemapType.ITEMS
    assert sitemap.location == BASE
    assert sitemap.children == ()
    assert [item.location for item in sitemap.items] == [
        "https://www.example.com/",
        "https://www.example.com/catalog?item=12&desc=vacation_hawaii",
        "https://www.example.com/catalog?item=73&desc=vacation_new_zealand",
    ]


def test_urlset_fields_are_parsed():
    first, second, third = parse(URLSET_XML, BASE).items
    assert first.last_modified == datetime(2005, 1, 1, tzinfo=UTC)
    assert first.change_frequency is ChangeFrequency.MONTHLY
    assert first.priority == pytest.approx(0.8)

    assert second.last_modified == datetime(2004, 12, 23, 18, 0, 15, tzinfo=UTC)
    assert second.change_frequency is ChangeFrequency.WEEKLY
    assert second.priority is None


def test_bad_optional_fields_keep_the_entry():
    third = parse(URLSET_XML, BASE).items[2]
    assert third.last_modified is None
    assert third.change_frequency is None
    assert third.priority is None


def test_urlset_lastmod_is_latest_item_lastmod():
    # Entries dropped for a missing <loc> do not count, even with a later <lastmod>
    assert parse(URLSET_XML, BASE).last_modified == datetime(2005, 1, 1, tzinfo=UTC)


def test_relative_locations_without_base_are_dropped():
    sitemap = parse(URLSET_XML)
    assert sitemap.location is None
    assert [item.location for item in sitemap.items] == [
        "https://www.example.com/",
        "https://www.example.com/catalog?item=73&desc=vacation_new_zealand",
    ]


def test_empty_urlset():
    sitemap = parse('<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"></urlset>', BASE)
    assert sitemap.sitemap_type is SitemapType.ITEMS
    assert sitemap.items == ()
    assert sitemap.last_modified is None


def test_only_direct_url_children_are_read():
    xml = """<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <url><loc>https://example.com/a</loc></url>
        <group><url><loc>https://example.com/nested</loc></url></group>
        <url xmlns="http://example.com/other"><loc>https://example.com/foreign</loc></url>
    </urlset>"""
    assert [item.location for item in parse(xml).items] == ["https://example.com/a"]


# =============================================================================
# 2. SITEMAP INDEXES
# =============================================================================


def test_index_keeps_children_with_loc_in_document_order():
    sitemap = parse(INDEX_XML, BASE)
    assert sitemap.sitemap_type is SitemapType.INDEX
    assert sitemap.items == ()
    assert [child.location for child in sitemap.children] == [
        "https://www.example.com/sitemap-1.xml",
        "https://www.example.com/sitemap-2.xml",
        "https://www.example.com/sitemap-3.xml",
    ]
    assert all(child.sitemap_type is SitemapType.NOT_LOADED for child in sitemap.children)


def test_index_lastmod_is_latest_child_lastmod():
    sitemap = parse(INDEX_XML, BASE)
    assert [child.last_modified for child in sitemap.children] == [
        datetime(2019, 1, 1, tzinfo=UTC),
        datetime(2020, 6, 1, tzinfo=UTC),
        None,
    ]
    assert sitemap.last_modified == datetime(2020, 6, 1, tzinfo=UTC)


def test_index_without_timestamps_has_no_lastmod():
    xml = """<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <sitemap><loc>https://example.com/a.xml</loc></sitemap>
        <sitemap><loc>https://example.com/b.xml</loc><lastmod>garbage</lastmod></sitemap>
    </sitemapindex>"""
    sitemap = parse(xml)
    assert len(sitemap.children) == 2
    assert sitemap.last_modified is None


# =============================================================================
# 3. DOCUMENT-LEVEL FAILURES
# =============================================================================


@pytest.mark.parametrize("content", [
    None,
    "",
    "   \n ",
    "<urlset><url><loc>broken",
    "<urlset><url><loc>http://bad.com</loc></badurl></urlset>",
    "not xml at all",
])
def test_malformed_documents_yield_no_result(content):
    assert parse(content, BASE) is None


@pytest.mark.parametrize("content", [
    "<foo/>",
    '<foo xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"/>',
    "<urlset><url><loc>https://example.com/</loc></url></urlset>",
    '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.84"/>',
])
def test_unrecognized_roots_yield_no_result(content):
    assert parse(content, BASE) is None


def test_parse_strict_distinguishes_failures():
    parser = SitemapParser()
    with pytest.raises(MalformedDocumentError):
        parser.parse_strict("<urlset>", BASE)
    with pytest.raises(MalformedDocumentError):
        parser.parse_strict("  ", BASE)
    with pytest.raises(UnrecognizedRootElementError) as excinfo:
        parser.parse_strict("<foo/>", BASE)
    assert excinfo.value.tag == "foo"


def test_document_failure_is_logged(caplog):
    with caplog.at_level(logging.ERROR, logger="sitemap_tree.sitemap_parser"):
        assert parse("<urlset>", BASE) is None
    assert "Could not parse sitemap" in caplog.text


def test_unresolvable_entry_is_logged_as_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="sitemap_tree.sitemap_parser"):
        sitemap = parse(URLSET_XML)
    assert len(sitemap.items) == 2
    assert "Skipping URL entry with unresolvable <loc>" in caplog.text


def test_relative_base_keeps_absolute_locations():
    xml = """<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <url><loc>https://example.com/a</loc></url>
        <url><loc>/b</loc></url>
    </urlset>"""
    for base in ("sitemaps/sitemap.xml", ""):
        sitemap = parse(xml, base)
        assert [item.location for item in sitemap.items] == ["https://example.com/a"]
        assert sitemap.location == base


# =============================================================================
# 4. INPUT QUIRKS
# =============================================================================


def test_leading_whitespace_and_bom_are_tolerated():
    xml = "\ufeff\n    " + INDEX_XML
    assert len(parse(xml, BASE).children) == 3


def test_declared_encoding_does_not_break_decoded_text():
    xml = """<?xml version="1.0" encoding="ISO-8859-1"?>
    <urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <url><loc>https://example.com/café</loc></url>
    </urlset>"""
    assert parse(xml).items[0].location == "https://example.com/café"


def test_strict_dates_config():
    xml = """<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
        <url><loc>https://example.com/a</loc><lastmod>2020-01-01T10:00:00Z</lastmod></url>
        <url><loc>https://example.com/b</loc><lastmod>2020-01-01</lastmod></url>
    </urlset>"""
    lenient = SitemapParser().parse(xml)
    strict = SitemapParser({"lenient_dates": False}).parse(xml)
    assert lenient.items[0].last_modified == datetime(2020, 1, 1, 10, tzinfo=UTC)
    assert strict.items[0].last_modified is None
    assert strict.items[1].last_modified == datetime(2020, 1, 1, tzinfo=UTC)


# =============================================================================
# 5. FIELD ASSEMBLERS
# =============================================================================


def test_build_sitemap_reference():
    reference = build_sitemap_reference(BASE, "/news.xml", "2020-01-01")
    assert reference.sitemap_type is SitemapType.NOT_LOADED
    assert reference.location == "https://www.example.com/news.xml"
    assert reference.last_modified == datetime(2020, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize("base, raw", [(BASE, ""), (BASE, None), (None, "/news.xml")])
def test_build_sitemap_reference_without_location(base, raw):
    assert build_sitemap_reference(base, raw, "2020-01-01") is None


def test_build_sitemap_item():
    item = build_sitemap_item(None, "https://example.com/a", "2020-01-01 10:00:00", "HOURLY", "7")
    assert item.location == "https://example.com/a"
    assert item.last_modified == datetime(2020, 1, 1, 10, tzinfo=UTC)
    assert item.change_frequency is ChangeFrequency.HOURLY
    assert item.priority == 1.0


def test_build_sitemap_item_optional_fields_default_to_absent():
    item = build_sitemap_item(BASE, "page")
    assert item.location == "https://www.example.com/page"
    assert item.last_modified is None
    assert item.change_frequency is None
    assert item.priority is None
    assert build_sitemap_item(None, "page") is None
