"""
Pytest configuration and shared fixtures.
"""

import csv
import os
from pathlib import Path
from typing import Callable

import pytest

from feedsync.catalog.models import Product, ProductStatus, ProductType
from feedsync.catalog.repository import CatalogRepository
from feedsync.feed.exporter import FeedDataExporter
from feedsync.feed.file_handler import FeedFileHandler
from feedsync.feed.job import GenerateProductFeed


ENV_KEYS = (
    "API_AUTH_ENABLED",
    "API_KEY",
    "FEED_AUTOREGENERATE",
    "SCHEDULER_AUTOSTART",
    "FEED_BATCH_SIZE",
    "FEED_FILE_SECRET",
    "FEED_WEBHOOK_URL",
)


@pytest.fixture(autouse=True, scope="function")
def reset_environment():
    """
    Reset settings read from the environment before each test.

    Tests run with API_AUTH_ENABLED=false by default, unless the test
    explicitly sets it otherwise.
    """
    # Store original values
    original = {key: os.environ.get(key) for key in ENV_KEYS}

    os.environ["API_AUTH_ENABLED"] = "false"
    os.environ.pop("FEED_WEBHOOK_URL", None)

    yield

    # Restore original values
    for key, value in original.items():
        if value is not None:
            os.environ[key] = value
        elif key in os.environ:
            del os.environ[key]


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def catalog(tmp_path: Path) -> CatalogRepository:
    """Empty catalog in a temporary database."""
    return CatalogRepository(tmp_path / "catalog.sqlite")


@pytest.fixture
def make_product() -> Callable[..., Product]:
    """Factory for valid, exportable simple products."""

    def _make(product_id: int, **overrides) -> Product:
        fields = dict(
            id=product_id,
            product_type=ProductType.SIMPLE,
            name=f"Product {product_id}",
            status=ProductStatus.PUBLISH,
            sku=f"SKU{product_id}",
            price=10.0 + product_id,
            permalink=f"https://shop.example.com/p/{product_id}",
            image_url=f"https://shop.example.com/img/{product_id}.jpg",
            stock_quantity=5,
        )
        fields.update(overrides)
        return Product(**fields)

    return _make


@pytest.fixture
def feed_file_handler(tmp_path: Path) -> FeedFileHandler:
    return FeedFileHandler(tmp_path / "feed", secret="s3cr3t")


@pytest.fixture
def make_feed_job(catalog, feed_file_handler) -> Callable[..., GenerateProductFeed]:
    """Factory for the feed job over the test catalog."""

    def _make(batch_size: int = 15) -> GenerateProductFeed:
        return GenerateProductFeed(
            item_source=catalog,
            feed_file_handler=feed_file_handler,
            feed_data_exporter=FeedDataExporter(),
            batch_size=batch_size,
        )

    return _make


@pytest.fixture
def read_feed_rows() -> Callable[[Path], list[list[str]]]:
    """Parse a feed file into rows, header included."""

    def _read(path: Path) -> list[list[str]]:
        with open(path, newline="", encoding="utf-8") as f:
            return list(csv.reader(f))

    return _read
