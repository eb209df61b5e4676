"""Transfer record models for upload and download tracking.

Every POST to /upload or /download creates one TransferRecord, whether or
not it launches a porklock process. Records launched as a job are mutated
by the runner task while request handlers may serialize them concurrently,
so every field access after construction goes through the record's lock.
"""

import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class TransferKind(str, Enum):
    """The two independent classes of transfer."""

    UPLOAD = "upload"
    DOWNLOAD = "download"

    @property
    def running_status(self) -> "TransferStatus":
        """Status written to a record while its porklock process runs."""
        if self is TransferKind.UPLOAD:
            return TransferStatus.UPLOADING
        return TransferStatus.DOWNLOADING

    @property
    def porklock_action(self) -> str:
        """porklock sub-command for this kind."""
        return "put" if self is TransferKind.UPLOAD else "get"

    @property
    def log_prefix(self) -> str:
        """Prefix of the per-kind stdout/stderr log files."""
        return "uploads" if self is TransferKind.UPLOAD else "downloads"


class TransferStatus(str, Enum):
    """Lifecycle status of a transfer record.

    State transitions:
    - REQUESTED -> UPLOADING/DOWNLOADING: runner picked up the record
    - UPLOADING/DOWNLOADING -> COMPLETED: porklock exited with status 0
    - UPLOADING/DOWNLOADING -> FAILED: log file, launch or exit failure

    RUNNING is the kind-neutral running state. It is accepted when records
    are deserialized but the runner always writes the kind-specific value.
    """

    REQUESTED = "requested"
    RUNNING = "running"
    UPLOADING = "uploading"
    DOWNLOADING = "downloading"
    FAILED = "failed"
    COMPLETED = "completed"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.FAILED)

    @property
    def is_running(self) -> bool:
        return self in (
            TransferStatus.RUNNING,
            TransferStatus.UPLOADING,
            TransferStatus.DOWNLOADING,
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class TransferSnapshot:
    """Consistent point-in-time copy of a TransferRecord's fields."""

    uuid: str
    kind: TransferKind
    status: TransferStatus
    start_time: datetime
    completion_time: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to the JSON record shape served by the API."""
        return {
            "uuid": self.uuid,
            "start_time": _format_time(self.start_time),
            "completion_time": _format_time(self.completion_time),
            "status": self.status.value,
            "kind": self.kind.value,
        }


class TransferRecord:
    """Identity and lifecycle state of one upload or download request."""

    def __init__(
        self,
        kind: TransferKind,
        record_id: Optional[str] = None,
        status: TransferStatus = TransferStatus.REQUESTED,
        start_time: Optional[datetime] = None,
        completion_time: Optional[datetime] = None,
    ) -> None:
        self._uuid = record_id or str(uuid.uuid4())
        self._kind = TransferKind(kind)
        self._status = status
        self._start_time = start_time or _utcnow()
        self._completion_time = completion_time
        self._lock = threading.Lock()

    @classmethod
    def create(cls, kind: TransferKind) -> "TransferRecord":
        """Create a new record in REQUESTED state stamped with the current time."""
        return cls(kind=kind)

    @property
    def uuid(self) -> str:
        return self._uuid

    @property
    def kind(self) -> TransferKind:
        return self._kind

    @property
    def status(self) -> TransferStatus:
        with self._lock:
            return self._status

    @property
    def completion_time(self) -> Optional[datetime]:
        with self._lock:
            return self._completion_time

    def set_status(self, status: TransferStatus) -> None:
        with self._lock:
            self._status = status

    def set_completion_time(self) -> None:
        """Stamp the completion time. Only the first call has an effect."""
        with self._lock:
            if self._completion_time is None:
                self._completion_time = _utcnow()

    def mark_finished(self, status: TransferStatus) -> None:
        """Move to a terminal status and stamp the completion time atomically.

        Readers never observe a terminal status without a completion time.
        """
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        with self._lock:
            self._status = status
            if self._completion_time is None:
                self._completion_time = _utcnow()

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> TransferSnapshot:
        with self._lock:
            return TransferSnapshot(
                uuid=self._uuid,
                kind=self._kind,
                status=self._status,
                start_time=self._start_time,
                completion_time=self._completion_time,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert record to dictionary for API responses."""
        return self.snapshot().to_dict()

    def to_json(self) -> bytes:
        """Serialize the record to UTF-8 JSON."""
        return json.dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TransferRecord":
        return cls(
            kind=TransferKind(data["kind"]),
            record_id=data["uuid"],
            status=TransferStatus(data["status"]),
            start_time=_parse_time(data["start_time"]),
            completion_time=_parse_time(data.get("completion_time")),
        )

    @classmethod
    def from_json(cls, payload: bytes) -> "TransferRecord":
        return cls.from_dict(json.loads(payload))

    def __repr__(self) -> str:
        snap = self.snapshot()
        return f"TransferRecord(uuid={snap.uuid!r}, kind={snap.kind.value!r}, status={snap.status.value!r})"
