# tests/conftest.py
import io
import os

os.environ.setdefault("ATM_LOG_TO_FILE", "0")   # <-- no log files from test runs

import pytest
from starlette.testclient import TestClient

from atm.app import create_app
from atm.bootstrap import seeded_ledgers
from atm.session import SessionMachine
from atm.terminal import StreamTerminal

AMEX_CARD = "34123455"      # bank 34, account 12345
VISA_CARD = "45007770"      # bank 45, account 777
OVERDRAWN_CARD = "51313377" # bank 51, account 31337 (seeded at -25.5)


@pytest.fixture()
def ledgers():
    return seeded_ledgers()

@pytest.fixture()
def banks(ledgers):
    return ledgers[0]

@pytest.fixture()
def accounts(ledgers):
    return ledgers[1]

@pytest.fixture()
def machine(banks, accounts):
    return SessionMachine(banks, accounts)

@pytest.fixture()
def active(machine):
    reply = machine.insert_card(AMEX_CARD)
    assert reply.ok
    return machine

@pytest.fixture()
def app(machine):
    return create_app(machine)

@pytest.fixture()
def client(app):
    return TestClient(app)


def scripted(*lines: str) -> StreamTerminal:
    """Terminal fed from the given lines; output collects in ``.stdout``."""
    return StreamTerminal(io.StringIO("".join(line + "\n" for line in lines)), io.StringIO())
