"""Data models for the application."""

from file_transfers.models.transfer import (
    TransferKind,
    TransferRecord,
    TransferSnapshot,
    TransferStatus,
)

__all__ = [
    "TransferKind",
    "TransferRecord",
    "TransferSnapshot",
    "TransferStatus",
]
