import csv
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional, TextIO

from models import (
    Transaction,
    TransactionType,
    ClientAccount,
    ProcessingStats,
    MalformedRecordError,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
)
from state import StateManager
from processor import TransactionProcessor

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")


class PaymentsEngine:
    """
    Feeds transaction records through the processor strictly in input order
    and exposes the resulting ledger tables.

    A fresh engine is created per run. Any LedgerError raised while reading or
    processing propagates to the caller unchanged.
    """

    def __init__(self):
        self._state = StateManager()
        self._processor = TransactionProcessor(self._state)
        self._stats = ProcessingStats()

    @property
    def accounts(self) -> Dict[int, ClientAccount]:
        return self._state.get_all_accounts()

    @property
    def transactions(self) -> Dict[int, Transaction]:
        return self._state.get_all_transactions()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
            return self.process_stream(f)

    def process_stream(self, stream: TextIO) -> Dict[int, ClientAccount]:
        """Process CSV text stream and return final account states."""
        logger.info("Starting transaction processing")

        for transaction in self.iter_transactions(stream):
            self.process(transaction)

        logger.info(
            f"Processed: {self._stats.processed}, "
            f"Failed: {self._stats.failed}, "
            f"Ignored: {self._stats.ignored}"
        )
        return self._state.get_all_accounts()

    def process(self, transaction: Transaction) -> None:
        result = self._processor.process(transaction)
        self._stats.record(result)

    def iter_transactions(self, stream: TextIO) -> Iterator[Transaction]:
        """Lazily parse CSV rows into transactions."""
        reader = csv.reader(stream)

        try:
            header = next(reader, None)
            if header is None:
                return
            columns = self._parse_header(header)

            for row in reader:
                if not any(value.strip() for value in row):
                    continue
                yield self._parse_csv_row(row, columns, reader.line_num)
        except (UnicodeDecodeError, csv.Error) as e:
            raise MalformedRecordError(f"Line {reader.line_num + 1}: {e}") from e

    @staticmethod
    def _parse_header(header: List[str]) -> Dict[str, int]:
        if header:
            header = [header[0].lstrip("\ufeff")] + header[1:]
        columns = {name.strip().lower(): index for index, name in enumerate(header)}
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise MalformedRecordError(f"Missing column(s) in header: {', '.join(missing)}")
        return columns

    def _parse_csv_row(self, row: List[str], columns: Dict[str, int], line_num: int) -> Transaction:
        """Parse CSV row into Transaction."""

        def field(name: str) -> str:
            index = columns.get(name)
            if index is None or index >= len(row):
                return ""
            return row[index].strip()

        try:
            transaction_type = TransactionType(field("type").lower())
            client_id = self._parse_id(field("client"), MAX_CLIENT_ID, "client")
            transaction_id = self._parse_id(field("tx"), MAX_TRANSACTION_ID, "tx")
            amount = self._parse_amount(field("amount"))
        except ValueError as e:
            raise MalformedRecordError(f"Line {line_num}: failed to parse row {row}: {e}") from e

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )

    @staticmethod
    def _parse_id(value: str, maximum: int, name: str) -> int:
        if not value.isascii() or "_" in value:
            raise ValueError(f"invalid {name} {value!r}")
        parsed = int(value)
        if not 0 <= parsed <= maximum:
            raise ValueError(f"{name} {parsed} out of range 0..{maximum}")
        return parsed

    @staticmethod
    def _parse_amount(value: str) -> Optional[Decimal]:
        if not value:
            return None
        if not value.isascii() or "_" in value:
            raise ValueError(f"invalid amount {value!r}")
        try:
            amount = Decimal(value)
        except InvalidOperation as e:
            raise ValueError(f"invalid amount {value!r}") from e
        if not amount.is_finite():
            raise ValueError(f"invalid amount {value!r}")
        return amount
