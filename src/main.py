import csv
import logging
import os
import sys
from decimal import Decimal
from typing import Iterable, List, Optional, TextIO

from errors import IntegrityError
from models import AccountView
from payments_engine import PaymentsEngine

DEFAULT_LOG_LEVEL = "WARNING"


def resolve_log_level() -> str:
    """Log level from PAYMENTS_LOG_LEVEL, falling back to the default for unknown names."""
    level = os.environ.get("PAYMENTS_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        print(f"Unknown PAYMENTS_LOG_LEVEL {level!r}, using {DEFAULT_LOG_LEVEL}", file=sys.stderr)
        return DEFAULT_LOG_LEVEL
    return level


def configure_logging() -> None:
    logging.basicConfig(
        level=resolve_log_level(),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def format_decimal(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.normalize()
    return f"{normalized:f}"


def write_accounts(accounts: Iterable[AccountView], out: TextIO) -> None:
    print("client,available,held,total,locked", file=out)
    for account in accounts:
        print(
            f"{account.client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: payments-ledger <input.csv>", file=sys.stderr)
        return 1

    configure_logging()

    engine = PaymentsEngine()
    try:
        accounts = engine.process_file(args[0])
    except (IntegrityError, OSError, UnicodeDecodeError, csv.Error) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts.values(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
