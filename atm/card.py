"""Card number validation and decoding.

A card number is exactly eight ASCII digits: two for the bank id, five for
the account id and a trailing Luhn check digit. Input stays a string so that
leading zeros in either field survive decoding.
"""

import logging
from typing import Union

from .domain import (
    ACCOUNT_ID_LENGTH,
    BANK_ID_LENGTH,
    CARD_LENGTH,
    Card,
    InvalidCheckDigit,
    InvalidLength,
    NotNumeric,
)

log = logging.getLogger("card")


def luhn_ok(digits: str) -> bool:
    """Return True when ``digits`` passes the Luhn (mod 10) checksum."""
    total = 0
    # right to left; every second digit starting at the second-to-last is doubled
    for i, ch in enumerate(reversed(digits)):
        d = ord(ch) - 48
        if i % 2 == 1:
            d *= 2
            if d > 9:
                d -= 9
        total += d
    return total % 10 == 0


def check_digit(prefix: str) -> int:
    """Digit that completes ``prefix`` to a number passing :func:`luhn_ok`."""
    for d in range(10):
        if luhn_ok(prefix + str(d)):
            return d
    raise ValueError(f"no check digit for {prefix!r}")  # unreachable for digit strings


def card_number(bank_id: int, account_id: int) -> str:
    """Build a valid card number for the given ids."""
    if not 0 <= bank_id < 10**BANK_ID_LENGTH:
        raise ValueError(f"bank id out of range: {bank_id}")
    if not 0 <= account_id < 10**ACCOUNT_ID_LENGTH:
        raise ValueError(f"account id out of range: {account_id}")
    prefix = f"{bank_id:0{BANK_ID_LENGTH}d}{account_id:0{ACCOUNT_ID_LENGTH}d}"
    return prefix + str(check_digit(prefix))


def decode(raw: str) -> Union[Card, InvalidLength, NotNumeric, InvalidCheckDigit]:
    if len(raw) != CARD_LENGTH:
        log.debug("card rejected: length %d", len(raw))
        return InvalidLength(actual=len(raw))
    if not (raw.isascii() and raw.isdigit()):
        log.debug("card rejected: non-digit input")
        return NotNumeric(raw=raw)

    bank_end = BANK_ID_LENGTH
    account_end = BANK_ID_LENGTH + ACCOUNT_ID_LENGTH
    check = int(raw[-1])
    if not luhn_ok(raw):
        log.debug("card rejected: check digit %d", check)
        return InvalidCheckDigit(check_digit=check, raw=raw)

    return Card(
        bank_id=int(raw[:bank_end]),
        account_id=int(raw[bank_end:account_end]),
        check_digit=check,
    )
