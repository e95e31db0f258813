import os
import sys
import logging
from decimal import Decimal
from typing import Dict, List, Optional, TextIO

from engine import PaymentsEngine
from models import ClientAccount, LedgerError

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"


def resolve_log_level(name: str) -> Optional[int]:
    """Map a level name such as "debug" to its logging constant, or None if unknown."""
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else None


def configure_logging() -> None:
    requested = os.environ.get(LOG_LEVEL_ENV, "WARNING")
    level = resolve_log_level(requested)

    logging.basicConfig(
        level=logging.WARNING if level is None else level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    if level is None:
        logger.warning(f"Unknown {LOG_LEVEL_ENV} {requested!r}, using WARNING")


def format_decimal(value: Decimal) -> str:
    """Format decimal in plain notation, removing trailing zeros."""
    normalized = value.normalize()
    if normalized == 0:
        return "0"
    return f"{normalized:f}"


def write_accounts(accounts: Dict[int, ClientAccount], out: TextIO) -> None:
    print("client,available,held,total,locked", file=out)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        print(
            f"{client_id},"
            f"{format_decimal(account.available)},"
            f"{format_decimal(account.held)},"
            f"{format_decimal(account.total)},"
            f"{str(account.locked).lower()}",
            file=out,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) > 1:
        print("Usage: python main.py [input.csv]", file=sys.stderr)
        return 1

    configure_logging()

    engine = PaymentsEngine()
    try:
        if args:
            accounts = engine.process_file(args[0])
        else:
            accounts = engine.process_stream(sys.stdin)
    except (LedgerError, OSError) as e:
        logger.debug("Aborting run", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    write_accounts(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
