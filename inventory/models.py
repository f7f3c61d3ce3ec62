"""
inventory/models.py -- Domain dataclasses for the product inventory.

Pure data containers with zero logic. Ownership checks and constraint
interpretation live in inventory/service.py; SQL lives in inventory/store.py.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

PRODUCT_SIZES = ("small", "large")


@dataclass
class Product:
    """A product owned by exactly one user.

    barcode is unique across all users. id is None before the record is
    written to the database.
    """

    user_id: int
    category: str
    price: int
    cost: int
    name: str
    description: str
    barcode: str
    expiration_date: date
    size: str  # "small" | "large"
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on insert/update
