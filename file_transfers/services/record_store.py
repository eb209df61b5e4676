"""Append-only history of transfer records for one transfer kind."""

import threading
from typing import Iterator, List, Optional

import structlog

from file_transfers.models.transfer import TransferKind, TransferRecord

logger = structlog.get_logger(__name__)


class RecordStore:
    """Ordered, thread-safe collection of TransferRecords.

    Records are kept in request arrival order and never removed. The store
    lives as long as the process; there is no eviction.
    """

    def __init__(self, kind: TransferKind) -> None:
        self.kind = kind
        self._records: List[TransferRecord] = []
        self._lock = threading.Lock()

    def append(self, record: TransferRecord) -> None:
        """Add a record to the end of the history.

        Raises:
            ValueError: If the record's kind does not match the store's kind.
        """
        if record.kind is not self.kind:
            raise ValueError(
                f"Cannot store {record.kind.value} record in {self.kind.value} history"
            )

        with self._lock:
            self._records.append(record)
            count = len(self._records)

        logger.debug(
            "transfer_record_stored",
            kind=self.kind.value,
            record_id=record.uuid,
            record_count=count,
        )

    def find(self, record_id: str) -> Optional[TransferRecord]:
        """Look up a record by UUID.

        Returns:
            The matching record, or None if no record has that id.
        """
        with self._lock:
            for record in self._records:
                if record.uuid == record_id:
                    return record
        return None

    def records(self) -> List[TransferRecord]:
        """Return a copy of the history in insertion order."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __iter__(self) -> Iterator[TransferRecord]:
        return iter(self.records())
