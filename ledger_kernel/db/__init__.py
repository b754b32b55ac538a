"""Database layer - engine, base classes, types, unit of work, immutability."""

from ledger_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from ledger_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
)
from ledger_kernel.db.unit_of_work import UnitOfWork, UnitOfWorkHandle

__all__ = [
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "UnitOfWork",
    "UnitOfWorkHandle",
]
