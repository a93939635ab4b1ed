"""Curated provider lists used to classify tracked hosts, and their YAML loader.

The YAML file has one top-level ``categories`` mapping with ``analytics``,
``cdn`` and ``ads`` lists. Missing lists fall back to the built-in ones.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES_PATH = str(Path(__file__).with_name("domain_categories.yaml"))

_ANALYTICS = [
    "google-analytics.com",
    "googletagmanager.com",
    "facebook.com",
    "doubleclick.net",
    "google.com/analytics",
    "hotjar.com",
    "mixpanel.com",
    "segment.com",
    "amplitude.com",
    "fullstory.com",
    "logrocket.com",
    "yandex.ru/metrika",
    "criteo.com",
    "bing.com",
    "linkedin.com/px",
    "twitter.com/i",
    "pinterest.com/ct",
    "reddit.com/api",
    "outbrain.com",
    "taboola.com",
    "sharethrough.com",
    "adsystem.com",
]

_CDN = [
    "cloudflare.com",
    "amazonaws.com",
    "azureedge.net",
    "fastly.com",
    "jsdelivr.net",
    "unpkg.com",
    "cdnjs.cloudflare.com",
    "maxcdn.com",
    "bootstrapcdn.com",
    "googleapis.com",
    "gstatic.com",
    "fontawesome.com",
    "typekit.net",
    "akamaihd.net",
    "msecnd.net",
    "rackcdn.com",
    "keycdn.com",
]

_ADS = [
    "googlesyndication.com",
    "googleadservices.com",
    "facebook.com/tr",
    "amazon-adsystem.com",
    "adsystem.com",
    "ads.yahoo.com",
    "bing.com/ads",
    "outbrain.com",
    "taboola.com",
    "revcontent.com",
    "mgid.com",
    "content.ad",
    "yandex.ru/ads",
    "criteo.com",
    "adsrvr.org",
    "adnxs.com",
    "rubiconproject.com",
    "pubmatic.com",
    "openx.net",
    "contextweb.com",
]


class CategoryLists(BaseModel):
    """Provider lists, checked in order: analytics, CDN, ads."""

    analytics: list[str] = Field(default_factory=lambda: list(_ANALYTICS))
    cdn: list[str] = Field(default_factory=lambda: list(_CDN))
    ads: list[str] = Field(default_factory=lambda: list(_ADS))


def load_category_lists(yaml_path: str | None) -> CategoryLists:
    """Parse a category list YAML file.

    Returns the built-in lists if the file is missing, unparsable or does not
    contain a ``categories`` mapping.
    """
    if yaml_path is None:
        return CategoryLists()

    path = Path(yaml_path)
    if not path.exists():
        logger.warning("Domain category file not found at %s, using built-in lists", yaml_path)
        return CategoryLists()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Failed to parse domain category YAML at %s: %s", yaml_path, exc)
        return CategoryLists()

    if not isinstance(raw, dict) or not isinstance(raw.get("categories"), dict):
        logger.warning("Domain category YAML missing 'categories' key, using built-in lists")
        return CategoryLists()

    try:
        return CategoryLists.model_validate(raw["categories"])
    except Exception as exc:
        logger.error("Invalid domain category lists in %s: %s, using built-in lists", yaml_path, exc)
        return CategoryLists()
