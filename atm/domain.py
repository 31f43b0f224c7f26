import math
from enum import Enum
from typing import ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

CARD_LENGTH = 8
BANK_ID_LENGTH = 2
ACCOUNT_ID_LENGTH = 5


def format_amount(x: float) -> str:
    # shortest round-trip repr: 1650.32 -> "1650.32", 100 -> "100.0"
    return repr(float(x))


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    bank_id: int = Field(..., ge=0, le=10**BANK_ID_LENGTH - 1)
    account_id: int = Field(..., ge=0, le=10**ACCOUNT_ID_LENGTH - 1)
    check_digit: int = Field(..., ge=0, le=9)


class EntityKind(str, Enum):
    BANK = "Bank"
    ACCOUNT = "Account"


# ---- result variants ----
# Returned (never raised) by the codec, the ledgers and the session machine.

class AtmError(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: ClassVar[str] = "ATM_ERROR"

    @property
    def message(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.message


class InvalidLength(AtmError):
    code: ClassVar[str] = "INVALID_LENGTH"
    expected: int = CARD_LENGTH
    actual: int

    @property
    def message(self) -> str:
        return f"Card number must be length {self.expected}"


class NotNumeric(AtmError):
    code: ClassVar[str] = "NOT_NUMERIC"
    raw: str

    @property
    def message(self) -> str:
        return f"Card number must contain only digits: {self.raw}"


class InvalidCheckDigit(AtmError):
    code: ClassVar[str] = "INVALID_CHECK_DIGIT"
    check_digit: int
    raw: str

    @property
    def message(self) -> str:
        return f"Check digit, {self.check_digit}, for card with number: {self.raw} is invalid"


class NotFound(AtmError):
    code: ClassVar[str] = "NOT_FOUND"
    kind: EntityKind
    id: int

    @property
    def message(self) -> str:
        return f"No Such {self.kind.value} With Id: {self.id}"


class InsufficientFunds(AtmError):
    code: ClassVar[str] = "INSUFFICIENT_FUNDS"
    account_id: int
    delta: float
    balance: float

    @property
    def message(self) -> str:
        if self.delta < 0:
            return (f"Attempted to withdraw {format_amount(-self.delta)} "
                    f"from account with balance of {format_amount(self.balance)}")
        return (f"Attempted to deposit {format_amount(self.delta)} "
                f"into account with balance of {format_amount(self.balance)}")


class BalanceOverflow(AtmError):
    code: ClassVar[str] = "BALANCE_OVERFLOW"
    account_id: int
    delta: float
    balance: float

    @property
    def message(self) -> str:
        return (f"Amount {format_amount(abs(self.delta))} is too large "
                f"for account with balance of {format_amount(self.balance)}")


class InvalidAmount(AtmError):
    code: ClassVar[str] = "INVALID_AMOUNT"
    action: Literal["deposit", "withdraw"]
    text: str
    reason: Literal["not_positive", "not_a_number", "missing"]

    @property
    def message(self) -> str:
        noun = "withdrawal" if self.action == "withdraw" else "deposit"
        if self.reason == "missing":
            return f"Invalid {noun} amount: no amount given."
        if self.reason == "not_a_number":
            return f"Invalid {noun} amount: {self.text} is not a number."
        return f"Invalid {noun} amount. Must be greater than zero."


class UnrecognizedAction(AtmError):
    code: ClassVar[str] = "UNRECOGNIZED_ACTION"
    text: str

    @property
    def message(self) -> str:
        return f"I do not recognize the command: {self.text}, please try again."


CardError = Union[InvalidLength, NotNumeric, InvalidCheckDigit]


# ---- exceptions (caller bugs and fatal startup problems only) ----

class AtmException(Exception):
    """Base exception for the ATM package."""


class StateError(AtmException):
    """An operation was invoked in a state that does not accept it."""

    def __init__(self, operation: str, state) -> None:
        self.operation = operation
        self.state = state
        super().__init__(f"cannot {operation} while ATM is {state.value}")


class BootstrapError(AtmException):
    """Bootstrap input is malformed or incomplete."""


def parse_amount(action: str, text) -> Union[float, InvalidAmount]:
    """Turn a raw amount (terminal line or JSON number) into a positive float."""
    if text is None or (isinstance(text, str) and not text.strip()):
        return InvalidAmount(action=action, text="", reason="missing")
    try:
        amount = float(text.strip() if isinstance(text, str) else text)
    except (TypeError, ValueError, OverflowError):
        return InvalidAmount(action=action, text=str(text), reason="not_a_number")
    if not math.isfinite(amount):
        return InvalidAmount(action=action, text=str(text), reason="not_a_number")
    if amount <= 0:
        return InvalidAmount(action=action, text=str(text), reason="not_positive")
    return amount

AnyError = Union[
    InvalidLength,
    NotNumeric,
    InvalidCheckDigit,
    NotFound,
    InsufficientFunds,
    BalanceOverflow,
    InvalidAmount,
    UnrecognizedAction,
]
