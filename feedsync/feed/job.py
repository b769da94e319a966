"""
Generate Product Feed job.

Chained job that exports every published simple product and variation
into the CSV feed:
- handle_start: fresh temporary file with the header row
- each batch: query IDs -> load products -> rows -> append to temp file
- handle_end: promote the temporary file to the live path
"""

import logging
from typing import Any

from ..catalog.models import Product, ProductType
from ..catalog.repository import ItemSource
from ..jobs.errors import ItemProcessingError
from ..jobs.pagination import BatchWindow
from .exporter import FeedDataExporter
from .file_handler import FeedFileHandler


logger = logging.getLogger(__name__)


PLUGIN_NAME = "catalog_feed_sync"
JOB_NAME = "generate_feed"
DEFAULT_BATCH_SIZE = 15

# Variable parents are dropped here, not in the ID query; their variations
# are exported individually.
EXPORTED_TYPES = (ProductType.SIMPLE, ProductType.VARIATION)


class GenerateProductFeed:
    """Chained job building the product feed file."""

    def __init__(
        self,
        item_source: ItemSource,
        feed_file_handler: FeedFileHandler,
        feed_data_exporter: FeedDataExporter,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        """
        Args:
            item_source: Catalog queried for product IDs and objects
            feed_file_handler: Feed file creation and manipulation
            feed_data_exporter: Product to feed row conversion
            batch_size: Product IDs per batch
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.item_source = item_source
        self.feed_file_handler = feed_file_handler
        self.feed_data_exporter = feed_data_exporter
        self._batch_size = batch_size

    # =========================================================================
    # Identity
    # =========================================================================

    def get_name(self) -> str:
        return JOB_NAME

    def get_plugin_name(self) -> str:
        return PLUGIN_NAME

    def get_batch_size(self) -> int:
        return self._batch_size

    # =========================================================================
    # Lifecycle Hooks
    # =========================================================================

    def handle_start(self, args: dict) -> None:
        """Discard any stale temporary file and write the header."""
        self.feed_file_handler.prepare_feed_folder()
        self.feed_file_handler.create_fresh_feed_temporary_file()
        self.feed_file_handler.write_to_feed_temporary_file(
            self.feed_data_exporter.generate_header()
        )

    def handle_end(self, args: dict) -> None:
        self.feed_file_handler.replace_feed_file_with_temp_file()

    def write_processed_items(self, records: list, args: dict) -> None:
        """Append one batch of rows to the temporary file."""
        if not records:
            return
        self.feed_file_handler.write_to_feed_temporary_file(
            self.feed_data_exporter.format_items_for_feed(records)
        )

    # =========================================================================
    # Batch Steps
    # =========================================================================

    def get_items_for_batch(self, window: BatchWindow, args: dict) -> list[int]:
        return self.item_source.query_exportable_ids(window.limit, window.offset)

    def filter_items_before_processing(self, items: list, args: dict) -> list[Product]:
        return self.item_source.get_products(items, EXPORTED_TYPES)

    def process_item(self, product: Any, args: dict) -> list[str]:
        if not isinstance(product, Product):
            raise ItemProcessingError(None, "Product not found.")

        try:
            return self.feed_data_exporter.generate_row_data(product)
        except ItemProcessingError:
            raise
        except Exception as e:
            raise ItemProcessingError(product.id, str(e)) from e
