"""
BaseService -- abstract base for session-scoped kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    services that write within a caller-owned transaction.  They use
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    LedgerPostingService is the exception: it owns its unit of work, so it
    is constructed from a UnitOfWork instead of a Session.

Failure modes:
    - If a subclass calls ``session.commit()`` itself, the caller can no
      longer group its writes with other work atomically.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for flush-only services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
