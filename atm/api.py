import logging
from threading import Lock
from typing import Union

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, StrictFloat, StrictInt, StrictStr

from .session import Reply, SessionMachine

log = logging.getLogger("api")
router = APIRouter()

# result variant code -> HTTP status
ERROR_STATUS = {
    "INVALID_LENGTH": 422,
    "NOT_NUMERIC": 422,
    "INVALID_CHECK_DIGIT": 422,
    "INVALID_AMOUNT": 422,
    "BALANCE_OVERFLOW": 422,
    "NOT_FOUND": 404,
    "INSUFFICIENT_FUNDS": 400,
    "UNRECOGNIZED_ACTION": 400,
}


class RejectedReply(Exception):
    """A machine reply carrying an error variant; rendered by the app as an error envelope."""

    def __init__(self, reply: Reply):
        self.reply = reply
        self.status = ERROR_STATUS.get(reply.error.code, 400)
        super().__init__(reply.error.message)


class CardBody(BaseModel):
    card_number: StrictStr = Field(..., description="Card number, exactly 8 digits")


class ActionBody(BaseModel):
    action: StrictStr = Field(..., description="deposit, withdraw, display, eject or exit")
    # numbers or numeric strings; the machine parses and validates
    amount: Union[StrictInt, StrictFloat, StrictStr, None] = None


def _terminal(request: Request) -> tuple[SessionMachine, Lock]:
    return request.app.state.machine, request.app.state.machine_lock


def _respond(reply: Reply) -> dict:
    if reply.error is not None:
        raise RejectedReply(reply)
    return {"state": reply.state.value, "messages": reply.messages}


@router.get("/")
def root():
    return {"status": "ok", "message": "Welcome to the ATM terminal API", "docs": "/docs"}


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/atm")
def status(request: Request):
    machine, lock = _terminal(request)
    with lock:
        card = machine.card
        state = machine.state
    return {
        "state": state.value,
        "bank_id": card.bank_id if card else None,
        "account_id": card.account_id if card else None,
    }


@router.post("/atm/card")
def insert_card(body: CardBody, request: Request):
    machine, lock = _terminal(request)
    with lock:
        reply = machine.insert_card(body.card_number)
    return _respond(reply)


@router.post("/atm/action")
def perform(body: ActionBody, request: Request):
    machine, lock = _terminal(request)
    with lock:
        reply = machine.dispatch(body.action, body.amount)
    log.info("action %s -> %s", body.action, reply.state.value)
    return _respond(reply)
