"""
core/schema.py -- SQLAlchemy Core table definitions.

All tables share one MetaData so create_all() can resolve the foreign keys
from sessions and products back to users in a single pass. Stores import the
Table objects they own; nothing else touches them.

Timestamps are UTC ISO 8601 strings (String(32)). Booleans are INTEGER 0/1
so the schema is identical on SQLite, MySQL and PostgreSQL.

Uniqueness and referential integrity are enforced here, not in application
code. core/db.translate_errors() turns the resulting IntegrityError into a
ConstraintViolation naming the column.
"""

from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, Text

metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("phone_number", String(20), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

# One row per issued refresh token. id is the token's jti claim.
sessions = Table(
    "sessions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("refresh_token", Text, nullable=False),
    Column("user_agent", Text, nullable=False),
    Column("client_ip", String(45), nullable=False),
    Column("is_blocked", Integer, nullable=False, server_default="0"),
    Column("expired_at", String(32), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
)

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.id"), nullable=False, index=True),
    Column("category", String(100), nullable=False),
    Column("price", Integer, nullable=False),
    Column("cost", Integer, nullable=False),
    Column("name", String(100), nullable=False),
    Column("description", Text, nullable=False),
    Column("barcode", String(100), nullable=False, unique=True),
    Column("expiration_date", String(10), nullable=False),  # YYYY-MM-DD
    Column("size", String(10), nullable=False),  # "small" | "large"
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)
