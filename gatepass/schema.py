# =======================================================================================
# gatepass/schema.py - Table Definitions
# =======================================================================================
from sqlalchemy import (
    BigInteger, Boolean, Column, Date, DateTime, ForeignKey, Integer,
    MetaData, String, Table, UniqueConstraint,
)

metadata = MetaData()

groups = Table(
    "groups", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False, unique=True),
)

# users.id is the value carried by the QR credential
users = Table(
    "users", metadata,
    Column("id", BigInteger, primary_key=True, autoincrement=False),
    Column("dni", BigInteger, nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("lastname", String(100), nullable=False),
    Column("role", String(16), nullable=False),
    Column("group_id", Integer, ForeignKey("groups.id"), nullable=True),
    Column("enabled", Boolean, nullable=False, default=True),
)

restrictions = Table(
    "restrictions", metadata,
    Column("id", Integer, primary_key=True),
    Column("group_id", Integer, ForeignKey("groups.id"), nullable=False, index=True),
    Column("date", Date, nullable=False),
    UniqueConstraint("group_id", "date", name="uq_restrictions_group_date"),
)

controllers = Table(
    "controllers", metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("name", String(100), nullable=False),
    Column("lastname", String(100), nullable=False),
    Column("dni", BigInteger, nullable=False),
    Column("gate", String(4), nullable=False),
)

# One row per user; version drives the optimistic update in the ledger
movements = Table(
    "movements", metadata,
    Column("user_id", BigInteger, primary_key=True, autoincrement=False),
    Column("state", String(8), nullable=False),
    Column("version", Integer, nullable=False),
)

# Append-only. user_id is the scanned id and may not exist in users (UnknownUser).
access_events = Table(
    "access_events", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", DateTime, nullable=False),
    Column("as_of", Date, nullable=False),
    Column("user_id", BigInteger, nullable=False, index=True),
    Column("gate", String(4), nullable=False),
    Column("controller_id", Integer, nullable=False),
    Column("allowed", Boolean, nullable=False),
    Column("reason", String(32), nullable=True),
    Column("from_state", String(8), nullable=True),
    Column("to_state", String(8), nullable=True),
)
