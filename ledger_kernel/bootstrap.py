"""
Runtime wiring: configuration -> logging -> engine -> services.

Both the CLI and embedding applications build the kernel through
``bootstrap()`` so that immutability listeners are always registered
before the first posting.
"""

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.config import LedgerConfig, load_config
from ledger_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.db.unit_of_work import UnitOfWork
from ledger_kernel.domain.clock import Clock
from ledger_kernel.logging_config import configure_logging
from ledger_kernel.services.ledger_posting_service import LedgerPostingService


@dataclass(frozen=True)
class LedgerRuntime:
    config: LedgerConfig
    session_factory: sessionmaker[Session]
    unit_of_work: UnitOfWork
    posting_service: LedgerPostingService


def bootstrap(
    config: LedgerConfig | None = None,
    *,
    create_schema: bool = False,
    clock: Clock | None = None,
) -> LedgerRuntime:
    """
    Initialize logging, the engine and the posting service from config.

    Args:
        config: Runtime configuration; loaded via load_config() if omitted.
        create_schema: Create missing tables after connecting.
        clock: Clock for posted_at stamps (SystemClock if omitted).
    """
    config = config or load_config()
    configure_logging(level=config.logging.level_number)

    init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
        busy_timeout_seconds=config.posting.timeout_seconds,
    )
    register_immutability_listeners()
    if create_schema:
        create_tables()

    session_factory = get_session_factory()
    unit_of_work = UnitOfWork(session_factory, timeout_seconds=config.posting.timeout_seconds)
    posting_service = LedgerPostingService(
        unit_of_work,
        clock=clock,
        balance_tolerance=config.posting.balance_tolerance,
    )
    return LedgerRuntime(
        config=config,
        session_factory=session_factory,
        unit_of_work=unit_of_work,
        posting_service=posting_service,
    )
