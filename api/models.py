"""
API request and response models for the inventory REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
inventory/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain models = domain truth; api/ models = API contract.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.passwords import MAX_PASSWORD_BYTES
from inventory.models import Product

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PHONE_NUMBER_PATTERN = r"^010[0-9]{8}$"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class SizeEnum(str, Enum):
    small = "small"
    large = "large"


# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body shared by POST /auth/register and POST /auth/login."""

    phone_number: str = Field(pattern=PHONE_NUMBER_PATTERN, description="Korean mobile number, e.g. 01012345678")
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class RegisterRequest(CredentialsRequest):
    """Request body for POST /api/v1/auth/register."""


class LoginRequest(CredentialsRequest):
    """Request body for POST /api/v1/auth/login."""


class RenewAccessTokenRequest(BaseModel):
    """Request body for POST /api/v1/auth/token."""

    # Compared verbatim against the stored session token; never stripped.
    refresh_token: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class TokenPairResponse(BaseModel):
    """Response for login and token renewal. Both tokens are bearer JWTs."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str


class MeResponse(BaseModel):
    """Response for GET /api/v1/auth/me."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    phone_number: str


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    """Request body for POST /api/v1/products."""

    model_config = ConfigDict(str_strip_whitespace=True)

    category: str = Field(min_length=1, max_length=100)
    price: int = Field(ge=0)
    cost: int = Field(ge=0)
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=2000)
    barcode: str = Field(min_length=1, max_length=100)
    expiration_date: date
    size: SizeEnum


class ProductPatch(BaseModel):
    """Request body for PATCH /api/v1/products/{product_id}.

    Every field is optional; omitted (or null) fields are left unchanged.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    price: Optional[int] = Field(default=None, ge=0)
    cost: Optional[int] = Field(default=None, ge=0)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=2000)
    barcode: Optional[str] = Field(default=None, min_length=1, max_length=100)
    expiration_date: Optional[date] = None
    size: Optional[SizeEnum] = None


class ProductResponse(BaseModel):
    """A single product as returned by every /products route."""

    model_config = ConfigDict(frozen=True)

    id: int
    user_id: int
    category: str
    price: int
    cost: int
    name: str
    description: str
    barcode: str
    expiration_date: date
    size: str
    created_at: str
    updated_at: str

    @classmethod
    def from_product(cls, product: Product) -> "ProductResponse":
        """Build a ProductResponse from an inventory Product dataclass."""
        return cls(
            id=product.id,
            user_id=product.user_id,
            category=product.category,
            price=product.price,
            cost=product.cost,
            name=product.name,
            description=product.description,
            barcode=product.barcode,
            expiration_date=product.expiration_date,
            size=product.size,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
