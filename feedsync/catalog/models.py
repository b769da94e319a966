"""
Catalog domain entities.

Product kinds:
- simple: standalone product, exported as one feed row
- variable: parent of variations, never exported itself
- variation: child of a variable product, exported with item_group_id
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProductType(str, Enum):
    """Product kind."""

    SIMPLE = "simple"
    VARIABLE = "variable"
    VARIATION = "variation"


class ProductStatus(str, Enum):
    """Publication status. Only PUBLISH is exportable."""

    PUBLISH = "publish"
    DRAFT = "draft"
    PRIVATE = "private"


@dataclass
class Product:
    """
    A catalog item.

    id is the immutable, ascending key used for offset pagination.
    """

    id: int
    product_type: ProductType
    name: str
    status: ProductStatus = ProductStatus.PUBLISH
    parent_id: Optional[int] = None
    description: str = ""
    sku: Optional[str] = None
    price: Optional[float] = None
    sale_price: Optional[float] = None
    currency: str = "USD"
    stock_quantity: Optional[int] = None
    in_stock: bool = True
    permalink: Optional[str] = None
    image_url: Optional[str] = None
    brand: Optional[str] = None
    condition: str = "new"

    @property
    def is_variation(self) -> bool:
        return self.product_type == ProductType.VARIATION

    @property
    def group_id(self) -> Optional[int]:
        """Parent ID for variations, None otherwise."""
        return self.parent_id if self.is_variation else None
