import logging
import math
from collections import defaultdict
from threading import Lock
from typing import Iterable, Union

from .domain import BalanceOverflow, EntityKind, InsufficientFunds, NotFound

log = logging.getLogger("ledger")


class BankDirectory:
    """Bank id -> bank name. Filled once at startup, read-only afterwards."""

    def __init__(self, banks: Iterable[tuple[int, str]] = ()):
        self._names: dict[int, str] = dict(banks)

    def bank_name(self, bank_id: int) -> Union[str, NotFound]:
        name = self._names.get(bank_id)
        if name is None:
            log.info("bank %s not found", bank_id)
            return NotFound(kind=EntityKind.BANK, id=bank_id)
        return name

    def items(self) -> list[tuple[int, str]]:
        return list(self._names.items())

    def __contains__(self, bank_id) -> bool:
        return bank_id in self._names

    def __len__(self) -> int:
        return len(self._names)


class AccountLedger:
    """Account id -> balance.

    ``adjust`` is the only mutation. It refuses any change that would leave
    the balance below zero, so a balance that starts non-negative stays
    non-negative. Balances seeded below zero are kept as they are.
    """

    def __init__(self, accounts: Iterable[tuple[int, float]] = ()):
        self._balances: dict[int, float] = {a: float(b) for a, b in accounts}
        self._locks: defaultdict[int, Lock] = defaultdict(Lock)
        self._locks_guard = Lock()

    def _lock_for(self, account_id: int) -> Lock:
        with self._locks_guard:
            return self._locks[account_id]

    def lookup(self, account_id: int) -> Union[float, NotFound]:
        balance = self._balances.get(account_id)
        if balance is None:
            log.info("account %s not found", account_id)
            return NotFound(kind=EntityKind.ACCOUNT, id=account_id)
        return balance

    def adjust(self, account_id: int, delta: float) -> Union[float, NotFound, InsufficientFunds, BalanceOverflow]:
        """
        Atomically add ``delta`` to the balance.
        Returns:
          - the new balance on success
          - NotFound if the account is missing
          - InsufficientFunds (ledger unchanged) if the result would be negative
          - BalanceOverflow (ledger unchanged) if the result is not a finite number
        """
        if account_id not in self._balances:
            log.info("adjust: account %s not found", account_id)
            return NotFound(kind=EntityKind.ACCOUNT, id=account_id)

        with self._lock_for(account_id):
            current = self._balances[account_id]
            new_bal = current + delta
            if not math.isfinite(new_bal):
                log.info("adjust overflow id=%s delta=%s balance=%s", account_id, delta, current)
                return BalanceOverflow(account_id=account_id, delta=delta, balance=current)
            if new_bal < 0:
                log.info("adjust insufficient id=%s delta=%s balance=%s", account_id, delta, current)
                return InsufficientFunds(account_id=account_id, delta=delta, balance=current)
            self._balances[account_id] = new_bal

        log.info("adjust id=%s delta=%s new_balance=%s", account_id, delta, new_bal)
        return new_bal

    def items(self) -> list[tuple[int, float]]:
        return list(self._balances.items())

    def __contains__(self, account_id) -> bool:
        return account_id in self._balances

    def __len__(self) -> int:
        return len(self._balances)
