"""
Catalog Repository - SQLite product storage.

Provides:
- Exportable-ID query paged by LIMIT/OFFSET, ordered by ascending ID
- Materialization of IDs into Product objects, filtered by type
- CRUD used by imports and tests

Every query failure is raised as ItemSourceError so the chain driver
treats it as fatal to the run.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol, Sequence

from ..jobs.errors import ItemSourceError
from .models import Product, ProductStatus, ProductType


logger = logging.getLogger(__name__)


class ItemSource(Protocol):
    """Item source contract used by the feed job."""

    def query_exportable_ids(self, limit: int, offset: int) -> list[int]:
        """IDs of exportable products, ascending by ID."""
        ...

    def get_products(
        self,
        ids: Sequence[int],
        types: Iterable[ProductType],
    ) -> list[Product]:
        """Materialize IDs into products of the given types, ascending by ID."""
        ...


# Published products, plus variations whose parent is published.
# Variations carry their own status but follow the parent's visibility.
EXPORTABLE_IDS_QUERY = """
    SELECT product.id
    FROM products AS product
    LEFT JOIN products AS parent ON product.parent_id = parent.id
    WHERE
        ( product.product_type = 'variation' AND parent.status = 'publish' )
    OR
        ( product.product_type != 'variation' AND product.status = 'publish' )
    ORDER BY product.id ASC
    LIMIT ? OFFSET ?
"""


class CatalogRepository:
    """
    SQLite-based product catalog.

    Opens one connection per operation so the repository can be shared
    between the API thread and the dispatcher thread.
    """

    def __init__(self, db_path: str | Path):
        """
        Initialize catalog repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = str(db_path)
        self._ensure_directory()
        self._init_db()

    def _ensure_directory(self) -> None:
        """Create parent directory if it doesn't exist."""
        db_dir = Path(self.db_path).parent
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"[Catalog] Created directory: {db_dir}")

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Read connection; sqlite errors become ItemSourceError."""
        try:
            conn = self._get_connection()
        except sqlite3.Error as e:
            raise ItemSourceError(f"Cannot open catalog {self.db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise ItemSourceError(f"Catalog query failed: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    id INTEGER PRIMARY KEY,
                    product_type TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'publish',
                    parent_id INTEGER,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    sku TEXT,
                    price REAL,
                    sale_price REAL,
                    currency TEXT NOT NULL DEFAULT 'USD',
                    stock_quantity INTEGER,
                    in_stock INTEGER NOT NULL DEFAULT 1,
                    permalink TEXT,
                    image_url TEXT,
                    brand TEXT,
                    condition TEXT NOT NULL DEFAULT 'new'
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_products_parent
                ON products (parent_id)
            """)

    # =========================================================================
    # Row Conversion
    # =========================================================================

    @staticmethod
    def _row_to_product(row: sqlite3.Row) -> Product:
        return Product(
            id=row["id"],
            product_type=ProductType(row["product_type"]),
            status=ProductStatus(row["status"]),
            parent_id=row["parent_id"],
            name=row["name"],
            description=row["description"],
            sku=row["sku"],
            price=row["price"],
            sale_price=row["sale_price"],
            currency=row["currency"],
            stock_quantity=row["stock_quantity"],
            in_stock=bool(row["in_stock"]),
            permalink=row["permalink"],
            image_url=row["image_url"],
            brand=row["brand"],
            condition=row["condition"],
        )

    # =========================================================================
    # Feed Queries
    # =========================================================================

    def query_exportable_ids(self, limit: int, offset: int) -> list[int]:
        """
        Get one window of exportable product IDs.

        Ordered by ascending ID so products inserted while a run is in
        progress land after the current offset.

        Args:
            limit: Maximum number of IDs
            offset: Number of IDs to skip

        Returns:
            List of product IDs

        Raises:
            ItemSourceError: If the query fails
        """
        with self._connection() as conn:
            rows = conn.execute(EXPORTABLE_IDS_QUERY, (limit, offset)).fetchall()
        return [int(row["id"]) for row in rows]

    def get_products(
        self,
        ids: Sequence[int],
        types: Iterable[ProductType] = (ProductType.SIMPLE, ProductType.VARIATION),
    ) -> list[Product]:
        """
        Materialize product IDs.

        IDs that no longer exist, or whose type is not requested, are
        silently left out.

        Args:
            ids: Product IDs to load
            types: Product types to keep

        Returns:
            Products in ascending ID order

        Raises:
            ItemSourceError: If the query fails
        """
        ids = list(ids)
        type_values = [ProductType(t).value for t in types]
        if not ids or not type_values:
            return []

        id_marks = ",".join("?" for _ in ids)
        type_marks = ",".join("?" for _ in type_values)

        with self._connection() as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM products
                WHERE id IN ({id_marks}) AND product_type IN ({type_marks})
                ORDER BY id ASC
                """,
                (*ids, *type_values),
            ).fetchall()

        return [self._row_to_product(row) for row in rows]

    # =========================================================================
    # CRUD
    # =========================================================================

    def upsert_product(self, product: Product) -> Product:
        """Insert or replace a product."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO products (
                    id, product_type, status, parent_id, name, description,
                    sku, price, sale_price, currency, stock_quantity, in_stock,
                    permalink, image_url, brand, condition
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    product.id,
                    ProductType(product.product_type).value,
                    ProductStatus(product.status).value,
                    product.parent_id,
                    product.name,
                    product.description,
                    product.sku,
                    product.price,
                    product.sale_price,
                    product.currency,
                    product.stock_quantity,
                    1 if product.in_stock else 0,
                    product.permalink,
                    product.image_url,
                    product.brand,
                    product.condition,
                ),
            )
        return product

    def upsert_products(self, products: Iterable[Product]) -> int:
        """Insert or replace many products. Returns the count written."""
        count = 0
        for product in products:
            self.upsert_product(product)
            count += 1
        return count

    def get_product(self, product_id: int) -> Optional[Product]:
        """Get a product by ID."""
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM products WHERE id = ?", (product_id,)
            ).fetchone()
        return self._row_to_product(row) if row else None

    def delete_product(self, product_id: int) -> bool:
        """Delete a product. Returns True if a row was removed."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
            return cursor.rowcount > 0

    def count_products(self) -> int:
        """Count all products regardless of type or status."""
        with self._connection() as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM products").fetchone()
        return int(row["n"])
