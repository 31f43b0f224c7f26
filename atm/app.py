import logging
import uuid
from contextlib import asynccontextmanager
from threading import Lock

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .api import RejectedReply, router
from .bootstrap import read_bootstrap, seeded_ledgers
from .domain import StateError
from .ledger import AccountLedger, BankDirectory
from .logger_config import request_id, setup_logging
from .session import SessionMachine
from .terminal import StreamTerminal

# ---- logging ----
setup_logging()
log = logging.getLogger("app")

# ---- status -> code mapping ----
STATUS_TO_CODE = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "UNPROCESSABLE_ENTITY",
}
def code_for(status: int) -> str:
    return STATUS_TO_CODE.get(status, f"HTTP_{status}")

def error_response(status: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code, "message": message}, **extra},
    )

# ---- middleware ----
class JSONBodyMiddleware(BaseHTTPMiddleware):
    """The terminal endpoints only take JSON bodies."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "POST":
            media_type = request.headers.get("content-type", "").partition(";")[0].strip().lower()
            if media_type != "application/json":
                log.warning("rejected %s %s: content-type %r", request.method, request.url.path, media_type)
                return error_response(415, code_for(415), "Content-Type must be application/json")
        return await call_next(request)

class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request and echoes the id as X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        token = request_id.set(request.headers.get("x-request-id") or uuid.uuid4().hex)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id.get()
            return response
        finally:
            request_id.reset(token)

# ---- ledgers ----
def load_ledgers() -> tuple[BankDirectory, AccountLedger]:
    """Ledgers for the HTTP terminal: bootstrap file, seed data, or empty."""
    path = config.bootstrap_file()
    if path:
        with open(path, encoding="utf-8") as f:
            banks, accounts = read_bootstrap(StreamTerminal(stdin=f))
        log.info("ledgers loaded from %s", path)
        return banks, accounts
    if config.seed_enabled():
        return seeded_ledgers()
    log.info("seed disabled, starting with empty ledgers")
    return BankDirectory(), AccountLedger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("🚀 ATM terminal API started (state=%s)", app.state.machine.state.value)
    try:
        yield
    finally:
        log.info("🛑 ATM terminal API stopped")

def create_app(machine: SessionMachine | None = None) -> FastAPI:
    app = FastAPI(title="ATM Terminal", lifespan=lifespan)
    app.state.machine = machine if machine is not None else SessionMachine(*load_ledgers())
    app.state.machine_lock = Lock()

    # middleware (last added runs first)
    app.add_middleware(JSONBodyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # exception handlers
    @app.exception_handler(RejectedReply)
    async def rejected_handler(request: Request, exc: RejectedReply):
        error = exc.reply.error
        log.info("%s %s -> %s (%s)", request.method, request.url.path, exc.status, error.code)
        return error_response(exc.status, error.code, exc.reply.messages[0], state=exc.reply.state.value)

    @app.exception_handler(StateError)
    async def state_handler(request: Request, exc: StateError):
        log.warning("%s %s -> 409 (%s)", request.method, request.url.path, exc)
        return error_response(409, code_for(409), str(exc), state=exc.state.value)

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        msg = "Invalid request."
        errors = exc.errors()
        if errors:
            err = errors[0]
            loc = ".".join(str(x) for x in err.get("loc", []))
            detail = err.get("msg", "")
            msg = f"{loc}: {detail}" if loc else (detail or msg)
        log.warning("422 validation: %s %s -> %s", request.method, request.url.path, msg)
        return error_response(422, code_for(422), msg)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else code_for(exc.status_code).replace("_", " ").title()
        log.warning("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, detail)
        return error_response(exc.status_code, code_for(exc.status_code), str(detail))

    # routers
    app.include_router(router)
    return app

app = create_app()
