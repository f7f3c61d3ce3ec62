"""
inventory/errors.py -- Client-reportable failures of the product service.
"""

from core.errors import ErrorKind, ServiceError


class ProductNotFoundError(ServiceError):
    code = "not_found_product"
    message = "not found product"
    kind = ErrorKind.NOT_FOUND


class ForbiddenProductError(ServiceError):
    code = "forbidden_product"
    message = "only get your product"
    kind = ErrorKind.FORBIDDEN


class DuplicateBarcodeError(ServiceError):
    code = "duplicate_barcode"
    message = "duplicate barcode"
    kind = ErrorKind.BAD_REQUEST


class OwnerNotFoundError(ServiceError):
    """The user_id on a new product does not reference an existing user."""

    code = "not_found_user"
    message = "not found user"
    kind = ErrorKind.NOT_FOUND
