"""Kernel services: the posting engine and account maintenance."""

from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.ledger_posting_service import LedgerPostingService

__all__ = ["AccountService", "BaseService", "LedgerPostingService"]
