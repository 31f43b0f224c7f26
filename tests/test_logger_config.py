import logging

from atm.logger_config import FORMAT, RequestIDFilter, request_id


def make_record() -> logging.LogRecord:
    return logging.LogRecord("ledger", logging.INFO, __file__, 1, "adjust id=%s", (12345,), None)


def test_request_id_defaults_to_dash():
    rec = make_record()
    assert RequestIDFilter().filter(rec)
    assert rec.request_id == "-"
    assert "[ledger] [-] adjust id=12345" in logging.Formatter(FORMAT).format(rec)


def test_request_id_follows_the_context():
    token = request_id.set("abc123")
    try:
        rec = make_record()
        RequestIDFilter().filter(rec)
    finally:
        request_id.reset(token)
    assert "[abc123] adjust id=12345" in logging.Formatter(FORMAT).format(rec)
    assert request_id.get() == "-"
