import pytest

from atm.domain import (
    BalanceOverflow,
    InsufficientFunds,
    InvalidAmount,
    InvalidCheckDigit,
    InvalidLength,
    NotFound,
    StateError,
    UnrecognizedAction,
)
from atm.session import Action, SessionMachine, State

from conftest import AMEX_CARD, OVERDRAWN_CARD, VISA_CARD


# ---------- action parsing ----------

@pytest.mark.parametrize("text, action", [
    ("deposit", Action.DEPOSIT),
    ("DEPOSIT", Action.DEPOSIT),
    ("Withdraw", Action.WITHDRAW),
    ("  display ", Action.DISPLAY),
    ("eject", Action.EJECT),
    ("ExIt", Action.EXIT),
    ("transfer", Action.UNRECOGNIZED),
    ("", Action.UNRECOGNIZED),
    ("deposit 5", Action.UNRECOGNIZED),
])
def test_action_parse_is_total(text, action):
    assert Action.parse(text) is action


def test_only_money_actions_need_amount():
    assert {a for a in Action if a.needs_amount} == {Action.DEPOSIT, Action.WITHDRAW}


# ---------- card insertion ----------

def test_machine_starts_awaiting_card(machine):
    assert machine.state is State.AWAITING_CARD
    assert machine.card is None


def test_insert_valid_card_starts_session(machine):
    reply = machine.insert_card(AMEX_CARD)
    assert reply.ok
    assert reply.state is State.CARD_ACTIVE
    assert reply.messages == ["American Express | Account Balance: 1650.32"]
    assert machine.card.account_id == 12345


def test_insert_ignores_surrounding_whitespace(machine):
    assert machine.insert_card(f"  {AMEX_CARD}\t").ok


@pytest.mark.parametrize("raw, error", [
    ("3412345", InvalidLength),
    ("34123456", InvalidCheckDigit),
])
def test_bad_card_keeps_awaiting(machine, raw, error):
    reply = machine.insert_card(raw)
    assert isinstance(reply.error, error)
    assert reply.state is State.AWAITING_CARD
    assert machine.session is None


@pytest.mark.parametrize("raw, message", [
    ("99123457", "No Such Bank With Id: 99"),
    ("34999995", "No Such Account With Id: 99999"),
])
def test_unknown_bank_or_account_keeps_awaiting(machine, raw, message):
    reply = machine.insert_card(raw)
    assert isinstance(reply.error, NotFound)
    assert reply.messages == [message]
    assert machine.state is State.AWAITING_CARD


def test_insert_while_active_is_a_state_error(active):
    with pytest.raises(StateError):
        active.insert_card(VISA_CARD)


def test_dispatch_without_card_is_a_state_error(machine):
    with pytest.raises(StateError):
        machine.dispatch("display")


# ---------- actions ----------

def test_deposit(active, accounts):
    reply = active.dispatch("deposit", "100")
    assert reply.ok
    assert reply.messages == ["Successfully deposited: 100.0"]
    assert accounts.lookup(12345) == pytest.approx(1750.32)


def test_withdraw(active, accounts):
    reply = active.dispatch("WITHDRAW", "50.32")
    assert reply.ok
    assert reply.messages == ["Successfully withdrew: 50.32"]
    assert accounts.lookup(12345) == pytest.approx(1600.0)


def test_withdraw_more_than_balance_keeps_session(active, accounts):
    reply = active.dispatch("withdraw", "2000")
    assert isinstance(reply.error, InsufficientFunds)
    assert reply.messages == [
        "Insufficient funds: Attempted to withdraw 2000.0 from account with balance of 1650.32"
    ]
    assert reply.state is State.CARD_ACTIVE
    assert accounts.lookup(12345) == 1650.32


@pytest.mark.parametrize("keyword, amount, message", [
    ("deposit", "-5", "Invalid deposit amount. Must be greater than zero."),
    ("deposit", "0", "Invalid deposit amount. Must be greater than zero."),
    ("withdraw", "-5", "Invalid withdrawal amount. Must be greater than zero."),
    ("withdraw", "abc", "Invalid withdrawal amount: abc is not a number."),
    ("deposit", "nan", "Invalid deposit amount: nan is not a number."),
    ("deposit", "inf", "Invalid deposit amount: inf is not a number."),
    ("deposit", "", "Invalid deposit amount: no amount given."),
    ("withdraw", None, "Invalid withdrawal amount: no amount given."),
])
def test_invalid_amount_is_rejected_before_the_ledger(active, accounts, keyword, amount, message):
    reply = active.dispatch(keyword, amount)
    assert isinstance(reply.error, InvalidAmount)
    assert reply.messages == [message]
    assert active.state is State.CARD_ACTIVE
    assert accounts.lookup(12345) == 1650.32


def test_numeric_amounts_are_accepted(active, accounts):
    assert active.dispatch("deposit", 10).ok
    assert active.dispatch("withdraw", 2.5).ok
    assert accounts.lookup(12345) == pytest.approx(1657.82)


def test_display_is_idempotent(active, accounts):
    first = active.dispatch("display")
    for _ in range(5):
        assert active.dispatch("display") == first
    assert first.messages == ["American Express | Account Balance: 1650.32"]
    assert accounts.lookup(12345) == 1650.32


def test_display_between_actions_shows_current_balance(machine):
    machine.insert_card(VISA_CARD)
    machine.dispatch("withdraw", "15")
    machine.dispatch("deposit", "1000")
    assert machine.dispatch("display").messages == ["Visa | Account Balance: 13000.0"]


def test_unrecognized_action_echoes_input(active):
    reply = active.dispatch("transfer")
    assert isinstance(reply.error, UnrecognizedAction)
    assert reply.messages == ["I do not recognize the command: transfer, please try again."]
    assert active.state is State.CARD_ACTIVE


def test_eject_returns_to_awaiting_card(active):
    reply = active.dispatch("eject")
    assert reply.state is State.AWAITING_CARD
    assert active.session is None
    # ready for the next card
    assert active.insert_card(VISA_CARD).messages == ["Visa | Account Balance: 12015.0"]


def test_exit_terminates(active):
    reply = active.dispatch("exit")
    assert reply.messages == ["Goodbye."]
    assert active.state is State.TERMINATED
    with pytest.raises(StateError):
        active.insert_card(AMEX_CARD)
    with pytest.raises(StateError):
        active.dispatch("display")


def test_overdrawn_account_can_be_displayed_but_not_withdrawn(machine, accounts):
    reply = machine.insert_card(OVERDRAWN_CARD)
    assert reply.messages == ["Mastercard | Account Balance: -25.5"]
    assert isinstance(machine.dispatch("withdraw", "1").error, InsufficientFunds)
    assert accounts.lookup(31337) == -25.5


def test_account_removed_mid_session_is_reported(banks):
    from atm.ledger import AccountLedger

    ledger = AccountLedger([(12345, 10.0)])
    machine = SessionMachine(banks, ledger)
    machine.insert_card(AMEX_CARD)
    ledger._balances.clear()
    reply = machine.dispatch("deposit", "1")
    assert isinstance(reply.error, NotFound)
    assert machine.state is State.CARD_ACTIVE


def test_huge_integer_amount_is_invalid_not_a_crash(active, accounts):
    reply = active.dispatch("deposit", 10**400)
    assert isinstance(reply.error, InvalidAmount)
    assert reply.error.reason == "not_a_number"
    assert active.state is State.CARD_ACTIVE
    assert accounts.lookup(12345) == 1650.32


def test_deposit_that_would_overflow_the_balance_is_refused(active, accounts):
    assert active.dispatch("deposit", "1e308").ok
    reply = active.dispatch("deposit", "1e308")
    assert isinstance(reply.error, BalanceOverflow)
    assert reply.messages[0].startswith("Amount 1e+308 is too large")
    assert active.state is State.CARD_ACTIVE
    assert accounts.lookup(12345) == pytest.approx(1e308)
    assert active.dispatch("display").messages == ["American Express | Account Balance: 1e+308"]
