"""
Product catalog source.

SQLite-backed catalog that the feed job pages through by ascending ID.
"""

from .models import Product, ProductType, ProductStatus
from .repository import CatalogRepository, ItemSource

__all__ = [
    "Product",
    "ProductType",
    "ProductStatus",
    "CatalogRepository",
    "ItemSource",
]
