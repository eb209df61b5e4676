"""Service layer implementations."""

from file_transfers.services.record_store import RecordStore
from file_transfers.services.run_gate import CompletionBarrier, RunGate
from file_transfers.services.transfer_runner import TransferRunner
from file_transfers.services.transfer_service import (
    TransferLane,
    TransferNotFoundError,
    TransferService,
    configure_transfer_service,
    get_transfer_service,
    reset_transfer_service,
)

__all__ = [
    # Record history
    "RecordStore",
    # Single-flight gate
    "CompletionBarrier",
    "RunGate",
    # Runner
    "TransferRunner",
    # Transfer service
    "TransferLane",
    "TransferNotFoundError",
    "TransferService",
    "configure_transfer_service",
    "get_transfer_service",
    "reset_transfer_service",
]
