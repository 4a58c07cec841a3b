"""
1.0 Data Processor Module
Flattens a parsed sitemap tree into pandas DataFrames and CSV snapshots.

Key features:
- One row per URL, tagged with the sitemap it came from
- One row per sitemap file (type, URL count, lastmod)
- Per-name folder structure with name-prefixed filenames
"""

import logging
import os
from typing import Any, Dict, List

import pandas as pd

from sitemap_tree.models import Sitemap, SitemapType

logger = logging.getLogger(__name__)

# 1.1 Column name constants for consistency
COL_LOC = "loc"
COL_LASTMOD = "lastmod"
COL_CHANGEFREQ = "changefreq"
COL_PRIORITY = "priority"
COL_SITEMAP_SOURCE = "sitemap_source_url"
COL_SITEMAP_URL = "sitemap_url"
COL_SITEMAP_TYPE = "sitemap_type"
COL_URL_COUNT = "url_count"

ITEM_COLUMNS = [COL_LOC, COL_LASTMOD, COL_CHANGEFREQ, COL_PRIORITY, COL_SITEMAP_SOURCE]
SITEMAP_COLUMNS = [COL_SITEMAP_URL, COL_SITEMAP_TYPE, COL_URL_COUNT, COL_LASTMOD]


class DataProcessor:
    """
    2.0 DataProcessor Class
    Turns sitemap trees into tabular records and stores them.
    """

    def __init__(self, data_dir: str = "output"):
        """
        2.1 Initialize the data processor.

        Args:
            data_dir: Root directory for CSV snapshots (default: "output")
        """
        self.data_dir = data_dir
        logger.info(f"DataProcessor initialized with data directory: {data_dir}")

    # =========================================================================
    # 3.0 RECORDS
    # =========================================================================

    def _item_records(self, sitemap: Sitemap) -> List[Dict[str, Any]]:
        """
        3.1 Collect one record per URL below this node.

        Index nodes contribute the items of their loaded children, each
        tagged with the child sitemap's location.
        """
        if sitemap.sitemap_type is SitemapType.INDEX:
            records = []
            for child in sitemap.children:
                records.extend(self._item_records(child))
            return records

        return [
            {
                COL_LOC: item.location,
                COL_LASTMOD: item.last_modified,
                COL_CHANGEFREQ: item.change_frequency.value if item.change_frequency else None,
                COL_PRIORITY: item.priority,
                COL_SITEMAP_SOURCE: sitemap.location,
            }
            for item in sitemap.items
        ]

    def _sitemap_records(self, sitemap: Sitemap) -> List[Dict[str, Any]]:
        """3.2 One record for this node, then one per descendant sitemap."""
        records = [{
            COL_SITEMAP_URL: sitemap.location,
            COL_SITEMAP_TYPE: sitemap.sitemap_type.value,
            COL_URL_COUNT: len(sitemap.items),
            COL_LASTMOD: sitemap.last_modified,
        }]
        for child in sitemap.children:
            records.extend(self._sitemap_records(child))
        return records

    # =========================================================================
    # 4.0 DATAFRAMES
    # =========================================================================

    def items_frame(self, sitemap: Sitemap) -> pd.DataFrame:
        """4.1 URL entries as a DataFrame with ITEM_COLUMNS."""
        df = pd.DataFrame(self._item_records(sitemap), columns=ITEM_COLUMNS)
        df[COL_LASTMOD] = pd.to_datetime(df[COL_LASTMOD], utc=True, errors="coerce")
        logger.debug(f"Built items frame for {sitemap.location}: {len(df):,} rows")
        return df

    def sitemaps_frame(self, sitemap: Sitemap) -> pd.DataFrame:
        """4.2 Sitemap file metadata as a DataFrame with SITEMAP_COLUMNS."""
        df = pd.DataFrame(self._sitemap_records(sitemap), columns=SITEMAP_COLUMNS)
        df[COL_LASTMOD] = pd.to_datetime(df[COL_LASTMOD], utc=True, errors="coerce")
        return df

    # =========================================================================
    # 5.0 STORAGE
    # =========================================================================

    def _get_file_paths(self, name: str) -> Dict[str, str]:
        """
        5.1 File paths for a snapshot.

        Layout:
            output/
                example.com/
                    example.com_urls.csv      (one row per URL)
                    example.com_sitemaps.csv  (one row per sitemap file)
        """
        name_dir = os.path.join(self.data_dir, name)
        return {
            "urls_csv": os.path.join(name_dir, f"{name}_urls.csv"),
            "sitemaps_csv": os.path.join(name_dir, f"{name}_sitemaps.csv"),
            "name_dir": name_dir,
        }

    def save_snapshot(self, sitemap: Sitemap, name: str) -> Dict[str, str]:
        """
        5.2 Write the URL and sitemap tables for a tree to CSV.

        Args:
            sitemap: Parsed (and optionally loaded) tree
            name: Folder and filename prefix, e.g. the domain

        Returns:
            Dictionary with the written file paths
        """
        file_paths = self._get_file_paths(name)
        os.makedirs(file_paths["name_dir"], exist_ok=True)

        urls_df = self.items_frame(sitemap)
        urls_df.to_csv(file_paths["urls_csv"], index=False)

        sitemaps_df = self.sitemaps_frame(sitemap)
        sitemaps_df.to_csv(file_paths["sitemaps_csv"], index=False)

        logger.info(
            f"Saved snapshot for {name}: {len(urls_df):,} URLs, "
            f"{len(sitemaps_df):,} sitemaps to {file_paths['name_dir']}"
        )
        return file_paths
