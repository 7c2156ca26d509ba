"""
SQLAlchemy Core table definitions for the trading bounded context.

Amounts and prices use Numeric with 8 decimal places (satoshi precision)
so that PostgreSQL keeps exact decimals.
Timestamps are stored as timezone-aware UTC where the backend allows it.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    UniqueConstraint,
)

metadata = MetaData()

AMOUNT = Numeric(precision=36, scale=8)


users = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("email", String(320), nullable=False, unique=True),
)

balances = Table(
    "balances",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(64), nullable=False),
    Column("currency", String(16), nullable=False),
    Column("network", String(32), nullable=True),
    Column("amount", AMOUNT, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("user_id", "currency", name="uq_balances_user_currency"),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False),
    Column("currency", String(16), nullable=False),
    Column("network", String(32), nullable=False),
    Column("amount", AMOUNT, nullable=False),
    Column("balance_after", AMOUNT, nullable=False),
    Column("type", String(32), nullable=False),
    Column("status", String(16), nullable=False),
    Column("reason", String(512), nullable=True),
    Column("from_currency", String(16), nullable=True),
    Column("to_currency", String(16), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_transactions_user_created", "user_id", "created_at"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("direction", String(8), nullable=False),
    Column("ticker", String(32), nullable=False),
    Column("entry_price", AMOUNT, nullable=False),
    Column("current_price", AMOUNT, nullable=True),
    Column("exit_price", AMOUNT, nullable=True),
    Column("duration", String(8), nullable=False),
    Column("display_duration", DateTime(timezone=True), nullable=True),
    Column("percentage", Integer, nullable=False),
    Column("quantity", AMOUNT, nullable=False),
    Column("outcome", String(8), nullable=False, default="pending"),
    Column("amount", AMOUNT, nullable=False),
    Column("pnl", AMOUNT, nullable=False),
    Column("status", String(16), nullable=False, index=True),
    Column("settled_by", String(8), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

price_trackers = Table(
    "price_trackers",
    metadata,
    Column("ticker", String(32), primary_key=True),
    Column("current_price", AMOUNT, nullable=False),
    Column("last_updated", DateTime(timezone=True), nullable=False),
)

price_history = Table(
    "price_history",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticker", String(32), nullable=False, index=True),
    Column("price", AMOUNT, nullable=False),
    Column("recorded_at", DateTime(timezone=True), nullable=False),
)
