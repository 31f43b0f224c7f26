"""Command line entry point.

Usage:
    atm run                     # bootstrap data, then card sessions, all on stdin
    atm run --seed              # sample banks/accounts, sessions on stdin
    atm run --bootstrap FILE    # bootstrap data from FILE, sessions on stdin
    atm serve --port 8000       # HTTP terminal
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import config
from .bootstrap import read_bootstrap, seeded_ledgers
from .domain import BootstrapError
from .logger_config import setup_logging
from .session import SessionMachine
from .terminal import StreamTerminal

log = logging.getLogger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="atm", description="Single-terminal ATM simulator")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="serve card holders on stdin/stdout")
    source = run.add_mutually_exclusive_group()
    source.add_argument("--seed", action="store_true", help="use the built-in sample banks and accounts")
    source.add_argument("--bootstrap", metavar="FILE", help="read banks and accounts from FILE instead of stdin")

    serve = sub.add_parser("serve", help="serve the HTTP terminal")
    serve.add_argument("--host", default=config.host())
    serve.add_argument("--port", type=int, default=config.port())
    return parser


def run_terminal(args: argparse.Namespace, stdin=None, stdout=None) -> int:
    terminal = StreamTerminal(stdin, stdout)
    try:
        if args.seed:
            banks, accounts = seeded_ledgers()
        elif args.bootstrap:
            with open(args.bootstrap, encoding="utf-8") as f:
                banks, accounts = read_bootstrap(StreamTerminal(stdin=f))
        else:
            banks, accounts = read_bootstrap(terminal)
    except (BootstrapError, OSError) as e:
        log.error("bootstrap failed: %s", e)
        return 1

    SessionMachine(banks, accounts).run(terminal)
    return 0


def serve(args: argparse.Namespace) -> int:
    import uvicorn

    try:
        from .app import create_app
        app = create_app()
    except (BootstrapError, OSError) as e:
        log.error("bootstrap failed: %s", e)
        return 1

    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "run":
        setup_logging(stream=sys.stderr)
        return run_terminal(args)
    setup_logging()
    return serve(args)


if __name__ == "__main__":
    sys.exit(main())
