"""The ATM session state machine.

    AWAITING_CARD --insert_card--> CARD_ACTIVE --eject--> AWAITING_CARD
                                   CARD_ACTIVE --exit---> TERMINATED

Every user-facing failure comes back as a :class:`Reply` carrying the error
variant; the machine never raises for bad input. ``StateError`` is raised
only when a caller drives it out of order.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from . import card as card_codec
from .domain import (
    AnyError,
    AtmError,
    Card,
    InsufficientFunds,
    InvalidAmount,
    NotFound,
    StateError,
    UnrecognizedAction,
    format_amount,
    parse_amount,
)
from .ledger import AccountLedger, BankDirectory
from .terminal import Terminal

log = logging.getLogger("session")

BANNER = "ATM is now on."
CARD_PROMPT = "Input Card Number: "
ACTION_PROMPT = "Enter desired action: deposit, withdraw, display, eject, exit"


class State(str, Enum):
    AWAITING_CARD = "awaiting_card"
    CARD_ACTIVE = "card_active"
    TERMINATED = "terminated"


class Action(Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    DISPLAY = "display"
    EJECT = "eject"
    EXIT = "exit"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, text: str) -> "Action":
        """Case-insensitive keyword lookup; anything else is UNRECOGNIZED."""
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.UNRECOGNIZED

    @property
    def needs_amount(self) -> bool:
        return self in (Action.DEPOSIT, Action.WITHDRAW)


def action_needs_amount(keyword: str) -> bool:
    return Action.parse(keyword).needs_amount


class Session(BaseModel):
    card: Card
    active: bool = True


class Reply(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: State
    messages: list[str] = []
    error: Optional[AnyError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SessionMachine:
    def __init__(self, banks: BankDirectory, accounts: AccountLedger):
        self.banks = banks
        self.accounts = accounts
        self.state = State.AWAITING_CARD
        self.session: Optional[Session] = None

    @property
    def card(self) -> Optional[Card]:
        return self.session.card if self.session else None

    # ---- replies ----

    def _reply(self, *messages: str) -> Reply:
        return Reply(state=self.state, messages=list(messages))

    def _fail(self, error: AtmError, prefix: str = "") -> Reply:
        return Reply(state=self.state, messages=[prefix + error.message], error=error)

    def _summary(self, card: Card):
        name = self.banks.bank_name(card.bank_id)
        if isinstance(name, NotFound):
            return name
        balance = self.accounts.lookup(card.account_id)
        if isinstance(balance, NotFound):
            return balance
        return f"{name} | Account Balance: {format_amount(balance)}"

    def _end(self, next_state: State) -> None:
        if self.session is not None:
            self.session.active = False
            log.info("session ended account=%s -> %s", self.session.card.account_id, next_state.value)
        self.session = None
        self.state = next_state

    # ---- transitions ----

    def insert_card(self, raw: str) -> Reply:
        if self.state is not State.AWAITING_CARD:
            raise StateError("insert a card", self.state)

        card = card_codec.decode(raw.strip())
        if isinstance(card, AtmError):
            log.info("card rejected: %s", card.code)
            return self._fail(card)

        summary = self._summary(card)
        if isinstance(summary, NotFound):
            log.info("card rejected: %s", summary.message)
            return self._fail(summary)

        self.session = Session(card=card)
        self.state = State.CARD_ACTIVE
        log.info("session started bank=%s account=%s", card.bank_id, card.account_id)
        return self._reply(summary)

    def dispatch(self, keyword: str, amount_text=None) -> Reply:
        """Run one action for the active card.

        ``amount_text`` is only consulted for deposit and withdraw; it may be
        the raw terminal line or a number.
        """
        if self.state is not State.CARD_ACTIVE:
            raise StateError("perform an action", self.state)

        action = Action.parse(keyword)
        card = self.session.card
        if action is Action.DEPOSIT:
            return self._deposit(card, amount_text)
        if action is Action.WITHDRAW:
            return self._withdraw(card, amount_text)
        if action is Action.DISPLAY:
            summary = self._summary(card)
            if isinstance(summary, NotFound):
                return self._fail(summary)
            return self._reply(summary)
        if action is Action.EJECT:
            self._end(State.AWAITING_CARD)
            return self._reply("Card ejected.")
        if action is Action.EXIT:
            self._end(State.TERMINATED)
            return self._reply("Goodbye.")

        log.info("unrecognized action %r", keyword)
        return self._fail(UnrecognizedAction(text=keyword))

    def _deposit(self, card: Card, amount_text) -> Reply:
        amount = parse_amount("deposit", amount_text)
        if isinstance(amount, InvalidAmount):
            return self._fail(amount)
        result = self.accounts.adjust(card.account_id, amount)
        if isinstance(result, InsufficientFunds):
            return self._fail(result, prefix="Insufficient funds: ")
        if isinstance(result, AtmError):
            return self._fail(result)
        return self._reply(f"Successfully deposited: {format_amount(amount)}")

    def _withdraw(self, card: Card, amount_text) -> Reply:
        amount = parse_amount("withdraw", amount_text)
        if isinstance(amount, InvalidAmount):
            return self._fail(amount)
        result = self.accounts.adjust(card.account_id, -amount)
        if isinstance(result, InsufficientFunds):
            return self._fail(result, prefix="Insufficient funds: ")
        if isinstance(result, AtmError):
            return self._fail(result)
        return self._reply(f"Successfully withdrew: {format_amount(amount)}")

    # ---- blocking terminal loop ----

    def run(self, terminal: Terminal) -> None:
        """Serve card holders on ``terminal`` until someone chooses exit.

        End of input counts as exit.
        """
        terminal.write(BANNER)
        while self.state is not State.TERMINATED:
            if self.state is State.AWAITING_CARD:
                raw = terminal.read_line(CARD_PROMPT)
                if raw is None:
                    break
                reply = self.insert_card(raw)
            else:
                terminal.write(ACTION_PROMPT)
                keyword = terminal.read_line()
                if keyword is None:
                    break
                amount_text = None
                if action_needs_amount(keyword):
                    amount_text = terminal.read_line(f"Enter amount to {Action.parse(keyword).value}: ")
                    if amount_text is None:
                        break
                reply = self.dispatch(keyword, amount_text)
            for line in reply.messages:
                terminal.write(line)

        if self.state is not State.TERMINATED:
            log.info("end of input, shutting down")
            self._end(State.TERMINATED)
