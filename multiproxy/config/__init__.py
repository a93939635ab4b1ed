"""Configuration: settings and domain category lists."""

from multiproxy.config.domain_categories import CategoryLists, load_category_lists
from multiproxy.config.settings import MultiproxySettings

__all__ = [
    "CategoryLists",
    "MultiproxySettings",
    "load_category_lists",
]
