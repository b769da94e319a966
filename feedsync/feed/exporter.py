"""
Feed Data Exporter.

Turns Product objects into feed rows. No I/O.

Format: CSV, minimal quoting, '\n' row terminator. The header column
order is authoritative; every data row has exactly len(FEED_COLUMNS)
fields.
"""

import csv
import io
import logging
from typing import Sequence

from ..catalog.models import Product
from ..jobs.errors import ItemProcessingError


logger = logging.getLogger(__name__)


FEED_COLUMNS = (
    "id",
    "item_group_id",
    "title",
    "description",
    "availability",
    "condition",
    "price",
    "sale_price",
    "link",
    "image_link",
    "brand",
    "quantity_to_sell_on_facebook",
)


class FeedDataError(ItemProcessingError):
    """Raised when a product lacks data required by the feed."""
    pass


def format_price(amount: float, currency: str) -> str:
    """Format a price as '<amount> <CURRENCY>', e.g. '12.50 USD'."""
    return f"{amount:.2f} {currency.upper()}"


class FeedDataExporter:
    """Maps products to feed rows and serializes rows to CSV text."""

    def __init__(self, columns: Sequence[str] = FEED_COLUMNS):
        self.columns = tuple(columns)

    def generate_header(self) -> str:
        """Header row, produced once per run."""
        return self._to_csv([list(self.columns)])

    def generate_row_data(self, product: Product) -> list[str]:
        """
        Map one product to a feed row.

        Args:
            product: Materialized product

        Returns:
            Field list in FEED_COLUMNS order

        Raises:
            FeedDataError: If name, price or permalink is missing
        """
        if not product.name:
            raise FeedDataError(product.id, "Missing product title.")
        if product.price is None:
            raise FeedDataError(product.id, "Missing product price.")
        if not product.permalink:
            raise FeedDataError(product.id, "Missing product link.")

        retailer_id = (
            f"{product.sku}_{product.id}" if product.sku else f"catalog_{product.id}"
        )

        quantity = product.stock_quantity
        if quantity is None:
            quantity = 1 if product.in_stock else 0

        fields = {
            "id": retailer_id,
            "item_group_id": str(product.group_id) if product.group_id else "",
            "title": product.name,
            "description": product.description or product.name,
            "availability": "in stock" if product.in_stock else "out of stock",
            "condition": product.condition,
            "price": format_price(product.price, product.currency),
            "sale_price": (
                format_price(product.sale_price, product.currency)
                if product.sale_price is not None
                else ""
            ),
            "link": product.permalink,
            "image_link": product.image_url or "",
            "brand": product.brand or "",
            "quantity_to_sell_on_facebook": str(max(quantity, 0)),
        }

        return [fields[column] for column in self.columns]

    def format_items_for_feed(self, records: Sequence[Sequence[str]]) -> str:
        """
        Serialize rows to CSV text.

        Rows whose field count differs from the header are dropped.
        """
        rows = []
        for record in records:
            if len(record) != len(self.columns):
                logger.warning(
                    f"Dropping feed row with {len(record)} fields "
                    f"(expected {len(self.columns)}): {record[:1]}"
                )
                continue
            rows.append(record)
        return self._to_csv(rows)

    @staticmethod
    def _to_csv(rows: Sequence[Sequence[str]]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerows(rows)
        return buffer.getvalue()
