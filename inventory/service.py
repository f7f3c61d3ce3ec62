"""
inventory/service.py -- Owner-scoped product CRUD.

Every read and write first loads the product and compares its owner with the
caller's user id (taken from a verified access token). A product that exists
but belongs to someone else is ForbiddenProductError, not NotFound.

Store failures are translated the same way as in auth/service.py:
ConstraintViolation on "barcode" -> DuplicateBarcodeError, on "user_id" ->
OwnerNotFoundError, anything else is logged and becomes InternalServiceError.
"""

import logging
from typing import Any

from core.db import ConstraintViolation, StoreError
from core.errors import InternalServiceError
from inventory.errors import DuplicateBarcodeError, ForbiddenProductError, OwnerNotFoundError, ProductNotFoundError
from inventory.models import Product
from inventory.store import ProductStore

logger = logging.getLogger("inventory.products")


class ProductService:
    def __init__(self, store: ProductStore) -> None:
        self.store = store

    def create_product(self, product: Product) -> Product:
        """Persist a new product for product.user_id and return it with its id."""
        try:
            product_id = self.store.create_product(product)
        except ConstraintViolation as exc:
            if exc.is_unique("barcode"):
                raise DuplicateBarcodeError() from exc
            if exc.is_foreign_key("user_id"):
                raise OwnerNotFoundError() from exc
            raise self._internal("create product", exc) from exc
        except StoreError as exc:
            raise self._internal("create product", exc) from exc

        logger.info("User %d created product %d", product.user_id, product_id)
        return self.get_product(product.user_id, product_id)

    def list_products(self, user_id: int) -> list[Product]:
        try:
            return self.store.list_products(user_id)
        except StoreError as exc:
            raise self._internal("list products", exc) from exc

    def get_product(self, user_id: int, product_id: int) -> Product:
        try:
            product = self.store.get_product(product_id)
        except StoreError as exc:
            raise self._internal("get product", exc) from exc
        if product is None:
            raise ProductNotFoundError()
        if product.user_id != user_id:
            raise ForbiddenProductError()
        return product

    def update_product(self, user_id: int, product_id: int, changes: dict[str, Any]) -> Product:
        """Apply a partial update. Keys whose value is None are left unchanged."""
        current = self.get_product(user_id, product_id)
        fields = {k: v for k, v in changes.items() if v is not None}
        if not fields:
            return current

        try:
            updated = self.store.update_product(product_id, **fields)
        except ConstraintViolation as exc:
            if exc.is_unique("barcode"):
                raise DuplicateBarcodeError() from exc
            raise self._internal("update product", exc) from exc
        except StoreError as exc:
            raise self._internal("update product", exc) from exc
        if not updated:
            # Deleted between the ownership check and the write
            raise ProductNotFoundError()

        logger.info("User %d updated product %d (%s)", user_id, product_id, ", ".join(sorted(fields)))
        return self.get_product(user_id, product_id)

    def delete_product(self, user_id: int, product_id: int) -> None:
        self.get_product(user_id, product_id)
        try:
            deleted = self.store.delete_product(product_id)
        except StoreError as exc:
            raise self._internal("delete product", exc) from exc
        if not deleted:
            raise ProductNotFoundError()
        logger.info("User %d deleted product %d", user_id, product_id)

    @staticmethod
    def _internal(operation: str, exc: Exception) -> InternalServiceError:
        logger.error("%s failed: %s", operation, exc, exc_info=exc)
        return InternalServiceError()
