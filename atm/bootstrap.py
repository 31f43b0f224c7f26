"""Startup data for the ledgers.

Two sources: a line-oriented bootstrap stream (count, then bank pairs, then
account pairs, one field per line) and the fixed sample data used by the
HTTP app and ``atm run --seed``.
"""

import logging
import math

from .domain import BootstrapError
from .ledger import AccountLedger, BankDirectory
from .terminal import Terminal

log = logging.getLogger("bootstrap")

SEED_BANKS: tuple[tuple[int, str], ...] = (
    (34, "American Express"),
    (45, "Visa"),
    (51, "Mastercard"),
    (5, "Discover"),
)

SEED_ACCOUNTS: tuple[tuple[int, float], ...] = (
    (12345, 1650.32),
    (777, 12015.00),
    (42, 47000.00),
    (31337, -25.50),  # overdrawn before the ATM came up
)


def _next(terminal: Terminal, what: str) -> str:
    line = terminal.read_line()
    if line is None:
        raise BootstrapError(f"unexpected end of input while reading {what}")
    return line


def _int(terminal: Terminal, what: str) -> int:
    line = _next(terminal, what)
    try:
        return int(line.strip())
    except ValueError as e:
        raise BootstrapError(f"{what} must be an integer, got {line!r}") from e


def _float(terminal: Terminal, what: str) -> float:
    line = _next(terminal, what)
    try:
        value = float(line.strip())
    except ValueError as e:
        raise BootstrapError(f"{what} must be a number, got {line!r}") from e
    if not math.isfinite(value):
        raise BootstrapError(f"{what} must be finite, got {line!r}")
    return value


def _unique(pairs: list, what: str) -> list:
    seen = set()
    for key, _ in pairs:
        if key in seen:
            raise BootstrapError(f"duplicate {what} id {key}")
        seen.add(key)
    return pairs


def read_bootstrap(terminal: Terminal) -> tuple[BankDirectory, AccountLedger]:
    """Read ``n`` banks and ``n`` accounts from the terminal."""
    n = _int(terminal, "bank/account count")
    if n < 0:
        raise BootstrapError(f"bank/account count must not be negative, got {n}")

    banks = []
    for _ in range(n):
        bank_id = _int(terminal, "bank id")
        banks.append((bank_id, _next(terminal, "bank name")))
    accounts = []
    for _ in range(n):
        account_id = _int(terminal, "account id")
        accounts.append((account_id, _float(terminal, "account balance")))

    log.info("bootstrap read %d banks and %d accounts", len(banks), len(accounts))
    return BankDirectory(_unique(banks, "bank")), AccountLedger(_unique(accounts, "account"))


def seeded_ledgers(banks=SEED_BANKS, accounts=SEED_ACCOUNTS) -> tuple[BankDirectory, AccountLedger]:
    """Build the ledgers from in-memory ``(id, name)`` and ``(id, balance)`` tuples."""
    directory = BankDirectory(_unique(list(banks), "bank"))
    ledger = AccountLedger(_unique(list(accounts), "account"))
    log.info("seed inserted %d banks and %d accounts", len(directory), len(ledger))
    return directory, ledger
