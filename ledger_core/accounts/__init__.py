"""Account catalog package."""

from ledger_core.accounts.bas import BAS_ACCOUNTS
from ledger_core.accounts.catalog import AccountCatalog
from ledger_core.errors import UnknownAccount

__all__ = ["AccountCatalog", "BAS_ACCOUNTS", "UnknownAccount"]
