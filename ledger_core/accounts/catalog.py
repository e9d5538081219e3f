"""
Account Catalog

Lookup table from account code to Account, with range queries.

DESIGN DECISION: Ranges are closed intervals on the integer value of
the code and may be any caller-supplied pair, not just the standard
category ranges. Tax fields use bespoke ranges such as 7700-7899
that cut across categories.

The catalog is the only owner of "which codes exist". Growth (SIE
imports, ad-hoc extension) is serialized by a lock so concurrent
imports cannot lose registrations.
"""

import threading
from typing import Iterable, Iterator, Optional, Union

import structlog

from ledger_core.accounts.bas import BAS_ACCOUNTS
from ledger_core.errors import UnknownAccount
from ledger_core.models.account import (
    CATEGORY_RANGES,
    Account,
    AccountCategory,
    AccountRange,
    category_for_code,
)


RangeSpec = Union[AccountCategory, AccountRange, tuple]

logger = structlog.get_logger(__name__)


class AccountCatalog:
    """
    The chart of accounts in use.

    Usage:
        catalog = AccountCatalog.bas()
        catalog.resolve("1930").name
        catalog.range_of(AccountRange.of(7700, 7899))
    """

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        allow_adhoc: bool = False,
    ):
        """
        Args:
            accounts: Initial accounts. Defaults to an empty catalog.
            allow_adhoc: If True, resolve() accepts unknown 4-digit codes
                         and registers a placeholder account for them.
        """
        self._accounts: dict[str, Account] = {}
        self._lock = threading.Lock()
        self.allow_adhoc = allow_adhoc
        for account in accounts or ():
            self._accounts[account.code] = account

    @classmethod
    def bas(cls, allow_adhoc: bool = False) -> "AccountCatalog":
        """Catalog seeded with the standard BAS subset."""
        return cls(
            (Account(code=code, name=name) for code, name in BAS_ACCOUNTS.items()),
            allow_adhoc=allow_adhoc,
        )

    def resolve(self, code: str) -> Account:
        """
        Look up an account.

        Raises:
            UnknownAccount: If the code is not in the catalog and ad-hoc
                            extension is disabled (or the code is not a
                            valid BAS code).
        """
        account = self._accounts.get(code)
        if account is not None:
            return account

        if not self.allow_adhoc:
            raise UnknownAccount(code)

        try:
            account = Account(code=code, name=f"Konto {code}")
        except ValueError:
            raise UnknownAccount(code)

        logger.info("adhoc_account_registered", code=code)
        return self.register(account)

    def get(self, code: str) -> Optional[Account]:
        return self._accounts.get(code)

    def register(self, account: Account) -> Account:
        """
        Add or replace an account.

        Returns the stored account.
        """
        with self._lock:
            self._accounts[account.code] = account
        return account

    def extend(self, accounts: Iterable[Account]) -> int:
        """
        Register accounts not already present.

        Existing codes keep their current definition.
        Returns the number of accounts added.
        """
        added = 0
        with self._lock:
            for account in accounts:
                if account.code not in self._accounts:
                    self._accounts[account.code] = account
                    added += 1
        return added

    def range_of(self, spec: RangeSpec) -> list[str]:
        """
        Codes in the catalog inside a category or custom range, ascending.

        Args:
            spec: An AccountCategory (its standard range), an AccountRange,
                  or a (low, high) tuple.
        """
        ranges = self._ranges_for(spec)
        return sorted(
            (code for code in self._accounts if any(r.contains(code) for r in ranges)),
            key=int,
        )

    def in_category(self, category: AccountCategory) -> list[Account]:
        """Accounts whose (possibly overridden) category matches."""
        return sorted(
            (a for a in self._accounts.values() if a.category == category),
            key=lambda a: a.range_value,
        )

    @staticmethod
    def category_for(code: str) -> AccountCategory:
        return category_for_code(code)

    @staticmethod
    def _ranges_for(spec: RangeSpec) -> tuple[AccountRange, ...]:
        if isinstance(spec, AccountCategory):
            return CATEGORY_RANGES[spec]
        if isinstance(spec, AccountRange):
            return (spec,)
        if isinstance(spec, tuple) and len(spec) == 2:
            return (AccountRange.of(*spec),)
        raise TypeError(f"Unsupported range specification: {spec!r}")

    def __contains__(self, code: object) -> bool:
        return code in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(sorted(self._accounts.values(), key=lambda a: a.range_value))
