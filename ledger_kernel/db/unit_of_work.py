"""
Module: ledger_kernel.db.unit_of_work
Responsibility: The atomic unit-of-work provider consumed by the posting
    service: begin() -> handle, commit(handle), rollback(handle).  A handle
    wraps one SQLAlchemy Session and one database transaction.
Architecture position: Kernel > DB.  May import from db/ and exceptions.
    MUST NOT import from services/, selectors/, or outer layers.

Invariants enforced:
    - All-or-nothing: commit() either commits every write made through the
      handle or rolls all of them back.  There is no partial commit.
    - Bounded duration: every unit of work carries a deadline.  PostgreSQL
      receives it as SET LOCAL statement_timeout / lock_timeout; commit()
      refuses to commit a unit of work that overran it.

Failure modes:
    - CommitFailedError(reason="timeout") if the deadline passed.
    - CommitFailedError(reason="storage_failure") if the database rejected
      the commit.  The SQLAlchemy exception is chained, never exposed in the
      message.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ledger_kernel.exceptions import CommitFailedError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.unit_of_work")

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class UnitOfWorkHandle:
    """An open unit of work: one session, one transaction, one deadline."""

    session: Session
    started_at: float
    deadline: float
    closed: bool = field(default=False)

    @property
    def elapsed_ms(self) -> float:
        return round((time.monotonic() - self.started_at) * 1000, 2)

    @property
    def expired(self) -> bool:
        return time.monotonic() > self.deadline


class UnitOfWork:
    """
    Transactional storage capability for the posting service.

    Contract:
        ``begin()`` opens a session and transaction.  The caller performs
        its reads and writes through ``handle.session`` using flush() only,
        then calls exactly one of ``commit(handle)`` or ``rollback(handle)``.
        Both close the session.

    Non-goals:
        - Does NOT retry.  A failed unit of work is reported to the caller,
          who may re-run the whole operation.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self._session_factory = session_factory
        self._timeout_seconds = timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout_seconds

    def begin(self) -> UnitOfWorkHandle:
        """Open a session and its transaction."""
        session = self._session_factory()
        started = time.monotonic()
        handle = UnitOfWorkHandle(
            session=session,
            started_at=started,
            deadline=started + self._timeout_seconds,
        )
        try:
            session.begin()
            if session.get_bind().dialect.name == "postgresql":
                timeout_ms = int(self._timeout_seconds * 1000)
                session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
                session.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
        except SQLAlchemyError as exc:
            session.close()
            handle.closed = True
            logger.error("unit_of_work_begin_failed", exc_info=True)
            raise CommitFailedError("storage_unavailable") from exc
        logger.debug("unit_of_work_started")
        return handle

    def commit(self, handle: UnitOfWorkHandle) -> None:
        """
        Commit the unit of work, or roll it back and raise.

        Raises:
            CommitFailedError: deadline exceeded or the database refused.
        """
        if handle.closed:
            raise RuntimeError("Unit of work is already closed")
        if handle.expired:
            self.rollback(handle)
            logger.warning(
                "unit_of_work_timed_out",
                extra={
                    "elapsed_ms": handle.elapsed_ms,
                    "timeout_seconds": self._timeout_seconds,
                },
            )
            raise CommitFailedError("timeout")
        try:
            handle.session.commit()
        except SQLAlchemyError as exc:
            self.rollback(handle)
            logger.error("unit_of_work_commit_failed", exc_info=True)
            raise CommitFailedError("storage_failure") from exc
        finally:
            if not handle.closed:
                handle.session.close()
                handle.closed = True
        logger.debug("unit_of_work_committed", extra={"elapsed_ms": handle.elapsed_ms})

    def rollback(self, handle: UnitOfWorkHandle) -> None:
        """Discard every write made through the handle."""
        if handle.closed:
            return
        try:
            handle.session.rollback()
        finally:
            handle.session.close()
            handle.closed = True
        logger.debug("unit_of_work_rolled_back", extra={"elapsed_ms": handle.elapsed_ms})

    @contextmanager
    def scope(self) -> Generator[Session, None, None]:
        """
        Context-manager form: commit on normal exit, roll back on exception.

        Usage:
            with unit_of_work.scope() as session:
                session.add(entity)
        """
        handle = self.begin()
        try:
            yield handle.session
        except BaseException:
            self.rollback(handle)
            raise
        self.commit(handle)
