"""Application services."""

from royalbid.services.analytics import CatalogAnalytics
from royalbid.services.catalog import CatalogService
from royalbid.services.product_editor import ProductEditor

__all__ = [
    "CatalogAnalytics",
    "CatalogService",
    "ProductEditor",
]
