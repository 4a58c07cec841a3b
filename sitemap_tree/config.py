import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_FILE_PATH = "sitemap_tree.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    # Fall back to dateutil for <lastmod> values outside the W3C layouts
    "lenient_dates": True,
    # lxml huge_tree: lift libxml2's limits on very deep or very large documents
    "huge_tree": False,
    # How many index levels SitemapLoader.load_tree follows
    "max_depth": 3,
}


def load_config(path: str = CONFIG_FILE_PATH) -> Optional[Dict[str, Any]]:
    """Loads parser settings from a JSON file, on top of DEFAULT_CONFIG."""
    if not os.path.exists(path):
        logger.info(f"Configuration file not found: {path}. Using defaults.")
        return dict(DEFAULT_CONFIG)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error decoding JSON from {path}: {e}")
        return None
    except OSError as e:
        logger.error(f"Could not read configuration file {path}: {e}")
        return None

    if not isinstance(config_data, dict):
        logger.error("Configuration must be a JSON object.")
        return None

    config = {**DEFAULT_CONFIG, **config_data}
    if not validate_config(config):
        return None
    logger.info(f"Successfully loaded configuration from {path}")
    return config


def validate_config(config: Dict[str, Any]) -> bool:
    """Validates the structure and content of the configuration."""
    if not isinstance(config, dict):
        logger.error("Configuration must be a dictionary.")
        return False

    for key in ("lenient_dates", "huge_tree"):
        if key in config and not isinstance(config[key], bool):
            logger.error(f"'{key}' must be true or false, got {config[key]!r}.")
            return False

    if "max_depth" in config:
        max_depth = config["max_depth"]
        # bool is an int subclass; reject it explicitly
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
            logger.error(f"'max_depth' must be a positive integer, got {max_depth!r}.")
            return False

    unknown = sorted(set(config) - set(DEFAULT_CONFIG))
    if unknown:
        logger.warning(f"Ignoring unknown configuration keys: {unknown}")

    logger.debug("Configuration validation successful.")
    return True


def resolve_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge a caller-supplied config over the defaults, falling back on invalid input."""
    if not config:
        return dict(DEFAULT_CONFIG)
    merged = {**DEFAULT_CONFIG, **config}
    if not validate_config(merged):
        logger.warning("Invalid configuration supplied. Using defaults.")
        return dict(DEFAULT_CONFIG)
    return merged
