"""Transfer service coordinating single-flight upload and download jobs.

- Every request creates its own TransferRecord, appended to the kind's history
- At most one porklock process per kind runs at a time (RunGate)
- Requests arriving while a job runs are merged into it, not queued
- Blocking requests wait on the kind's CompletionBarrier
"""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import structlog

from file_transfers.core.config import TransferConfig
from file_transfers.core.metrics import MetricsCollector
from file_transfers.models.transfer import TransferKind, TransferRecord, TransferStatus
from file_transfers.services.record_store import RecordStore
from file_transfers.services.run_gate import CompletionBarrier, Precondition, RunGate
from file_transfers.services.transfer_runner import TransferRunner

logger = structlog.get_logger(__name__)


class TransferNotFoundError(Exception):
    """Raised when a transfer record is not found."""

    pass


@dataclass
class TransferLane:
    """Shared state owned by one transfer kind."""

    kind: TransferKind
    store: RecordStore = field(init=False)
    gate: RunGate = field(init=False)
    barrier: CompletionBarrier = field(default_factory=CompletionBarrier)

    def __post_init__(self) -> None:
        self.store = RecordStore(self.kind)
        self.gate = RunGate(self.kind)


class TransferService:
    """Request coordinator for upload and download transfers.

    Each kind has its own record history, run gate and completion
    barrier, so uploads and downloads never contend with each other.
    Background jobs are tracked until they finish.
    """

    def __init__(
        self,
        config: TransferConfig,
        runner: Optional[TransferRunner] = None,
    ) -> None:
        """Initialize the transfer service.

        Args:
            config: Static porklock parameters.
            runner: Runner used for launched jobs (built from config if None).
        """
        self.config = config
        self.runner = runner or TransferRunner(config)
        self._lanes: Dict[TransferKind, TransferLane] = {
            kind: TransferLane(kind) for kind in TransferKind
        }
        self._tasks: Set[asyncio.Task] = set()

        logger.debug(
            "transfer_service_initialized",
            log_dir=config.log_dir,
            path_list_file=config.path_list_file,
        )

    def lane(self, kind: TransferKind) -> TransferLane:
        return self._lanes[kind]

    def path_list_usable(self) -> bool:
        """Check that the download input path list exists and is readable."""
        path = self.config.path_list_file
        return os.path.isfile(path) and os.access(path, os.R_OK)

    def _precondition(self, kind: TransferKind) -> Optional[Precondition]:
        if kind is TransferKind.DOWNLOAD:
            return self.path_list_usable
        return None

    async def request_transfer(self, kind: TransferKind, blocking: bool = True) -> TransferRecord:
        """Start or join a transfer of the given kind.

        Args:
            kind: Upload or download.
            blocking: When True, wait until the in-flight job of this kind
                (if any) has finished before returning.

        Returns:
            This request's own TransferRecord. When the request joined a job
            launched by an earlier request, its record stays REQUESTED.
        """
        lane = self.lane(kind)

        record = TransferRecord.create(kind)
        lane.store.append(record)

        logger.info(
            "transfer_requested",
            kind=kind.value,
            record_id=record.uuid,
            blocking=blocking,
        )

        launched = await lane.gate.try_acquire(self._precondition(kind))
        if launched:
            self._launch(lane, record)

        MetricsCollector.record_transfer_requested(
            kind=kind.value,
            launched=launched,
            record_count=len(lane.store),
        )

        if not launched:
            logger.info(
                "transfer_not_launched",
                kind=kind.value,
                record_id=record.uuid,
                gate_running=lane.gate.running,
            )

        if blocking:
            await lane.barrier.wait()
            logger.debug("transfer_wait_finished", kind=kind.value, record_id=record.uuid)

        return record

    def _launch(self, lane: TransferLane, record: TransferRecord) -> None:
        """Start the runner for a record whose request acquired the gate."""
        lane.barrier.add()
        task = asyncio.create_task(
            self._run_job(lane, record),
            name=f"transfer-{lane.kind.value}-{record.uuid}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("transfer_launched", kind=lane.kind.value, record_id=record.uuid)

    async def _run_job(self, lane: TransferLane, record: TransferRecord) -> None:
        try:
            await self.runner.run(record)
        except Exception as e:
            if not record.is_terminal():
                record.mark_finished(TransferStatus.FAILED)
            logger.error(
                "transfer_job_error",
                kind=lane.kind.value,
                record_id=record.uuid,
                error=str(e),
                exc_info=True,
            )
        finally:
            await lane.gate.release()
            lane.barrier.done()

    def get_record(self, kind: TransferKind, record_id: str) -> Optional[TransferRecord]:
        """Get a record by kind and ID.

        Returns:
            The record if found, None otherwise.
        """
        return self.lane(kind).store.find(record_id)

    def get_status(self, kind: TransferKind, record_id: str) -> TransferRecord:
        """Get a record by kind and ID or raise an error.

        Raises:
            TransferNotFoundError: If the kind's history has no such record.
        """
        record = self.get_record(kind, record_id)
        if record is None:
            raise TransferNotFoundError(f"{kind.value.capitalize()} not found: {record_id}")
        return record

    def list_records(self, kind: TransferKind) -> List[TransferRecord]:
        return self.lane(kind).store.records()

    def is_running(self, kind: TransferKind) -> bool:
        return self.lane(kind).gate.running

    def get_active_task_count(self) -> int:
        return len(self._tasks)

    async def wait_idle(self) -> None:
        """Wait for every in-flight transfer job to finish.

        Jobs are never cancelled; a running porklock process is allowed to
        complete.
        """
        pending = list(self._tasks)
        if not pending:
            return

        logger.info("transfer_service_waiting_for_jobs", count=len(pending))
        await asyncio.gather(*pending, return_exceptions=True)


# Global transfer service instance
_transfer_service: Optional[TransferService] = None


def configure_transfer_service(
    config: TransferConfig,
    runner: Optional[TransferRunner] = None,
) -> TransferService:
    """Configure and initialize the global transfer service.

    Args:
        config: Static porklock parameters.
        runner: Optional runner override.

    Returns:
        Configured TransferService instance.
    """
    global _transfer_service
    _transfer_service = TransferService(config=config, runner=runner)
    return _transfer_service


def get_transfer_service() -> TransferService:
    """Get the global transfer service instance.

    Raises:
        RuntimeError: If transfer service is not configured.
    """
    if _transfer_service is None:
        raise RuntimeError(
            "Transfer service not configured. Call configure_transfer_service() first."
        )
    return _transfer_service


def reset_transfer_service() -> None:
    """Forget the global transfer service (for testing)."""
    global _transfer_service
    _transfer_service = None
