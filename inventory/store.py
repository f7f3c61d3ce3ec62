"""
inventory/store.py -- SQLAlchemy-backed persistence layer for products.

Uses SQLAlchemy Core (not ORM) so the dataclasses in inventory/models.py
remain the authoritative domain representation. Swapping SQLite for
PostgreSQL or MySQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. ProductStore is the repository;
_row_to_product is the mapper. Route handlers never touch SQL directly.

Constraint handling: the barcode UNIQUE constraint and the user_id FOREIGN
KEY are enforced by the database. Violations come out of every write as
core.db.ConstraintViolation with field "barcode" or "user_id"; the service
decides what they mean.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ProductStore(engine)
    product_id = store.create_product(product)
    product = store.get_product(product_id)
    store.update_product(product_id, price=1200)
    store.delete_product(product_id)
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Engine

from core.db import translate_errors
from core.schema import products as _products
from inventory.models import Product

# Columns a caller may change through update_product().
_MUTABLE_FIELDS = frozenset(
    {"category", "price", "cost", "name", "description", "barcode", "expiration_date", "size"}
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProductStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_product(self, product: Product) -> int:
        """Insert a new product and return its assigned database ID."""
        now = _now_iso()
        with translate_errors(foreign_key_field="user_id"), self.engine.connect() as conn:
            result = conn.execute(
                insert(_products).values(
                    user_id=product.user_id,
                    category=product.category,
                    price=product.price,
                    cost=product.cost,
                    name=product.name,
                    description=product.description,
                    barcode=product.barcode,
                    expiration_date=product.expiration_date.isoformat(),
                    size=product.size,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_product(self, product_id: int) -> Optional[Product]:
        """Fetch a single product by ID. Returns None if not found."""
        with translate_errors(), self.engine.connect() as conn:
            row = conn.execute(select(_products).where(_products.c.id == product_id)).fetchone()
        return _row_to_product(row) if row is not None else None

    def list_products(self, user_id: int) -> list[Product]:
        """Return every product owned by user_id, newest first."""
        with translate_errors(), self.engine.connect() as conn:
            rows = conn.execute(
                select(_products).where(_products.c.user_id == user_id).order_by(_products.c.id.desc())
            ).fetchall()
        return [_row_to_product(r) for r in rows]

    def update_product(self, product_id: int, **fields) -> bool:
        """Update mutable fields on an existing product.

        Accepts any subset of _MUTABLE_FIELDS. expiration_date must be passed
        as a date; this method serializes it before writing. Unknown keys raise
        ValueError rather than being silently ignored.

        Returns True if a row was updated, False if product_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown product fields: {sorted(unknown)!r}")
        if isinstance(fields.get("expiration_date"), date):
            fields["expiration_date"] = fields["expiration_date"].isoformat()
        fields["updated_at"] = _now_iso()
        with translate_errors(), self.engine.connect() as conn:
            result = conn.execute(update(_products).where(_products.c.id == product_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def delete_product(self, product_id: int) -> bool:
        """Permanently delete a product. Returns True if deleted, False if not found."""
        with translate_errors(), self.engine.connect() as conn:
            result = conn.execute(delete(_products).where(_products.c.id == product_id))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_product(row) -> Product:
    return Product(
        id=row.id,
        user_id=row.user_id,
        category=row.category,
        price=row.price,
        cost=row.cost,
        name=row.name,
        description=row.description,
        barcode=row.barcode,
        expiration_date=date.fromisoformat(row.expiration_date),
        size=row.size,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
