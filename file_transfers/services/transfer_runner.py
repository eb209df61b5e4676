"""porklock runner for upload and download jobs.

Builds the porklock argument vector for a transfer kind, runs it with
stdout and stderr redirected to per-kind log files, and maps the outcome
onto the job's TransferRecord.
"""

import asyncio
import time
from contextlib import ExitStack
from pathlib import Path
from typing import List, Tuple

import structlog

from file_transfers.core.config import TransferConfig
from file_transfers.core.metrics import MetricsCollector
from file_transfers.models.transfer import TransferKind, TransferRecord, TransferStatus

logger = structlog.get_logger(__name__)


class TransferRunner:
    """Runs porklock for one transfer record at a time.

    Handles job lifecycle:
    - REQUESTED -> UPLOADING/DOWNLOADING before launch
    - COMPLETED on exit status 0
    - FAILED when a log file cannot be created, porklock cannot be
      started, or porklock exits non-zero

    The runner never raises for these failures; they are recorded on the
    TransferRecord and logged. Gate release is the caller's concern.
    """

    def __init__(self, config: TransferConfig) -> None:
        """Initialize the runner.

        Args:
            config: Static porklock parameters (user, paths, metadata).
        """
        self.config = config

    def build_command(self, kind: TransferKind) -> List[str]:
        """Build the porklock argument vector for a transfer kind.

        Args:
            kind: Upload or download.

        Returns:
            Command and arguments, executable first.
        """
        cmd = [
            self.config.executable,
            "-jar",
            self.config.jar_path,
            kind.porklock_action,
            "--user",
            self.config.user or "",
        ]

        if kind is TransferKind.DOWNLOAD:
            cmd.extend(
                [
                    "--source-list",
                    self.config.path_list_file,
                    "--destination",
                    self.config.download_destination,
                ]
            )
        else:
            cmd.extend(
                [
                    "--source",
                    self.config.download_destination,
                    "--destination",
                    self.config.upload_destination or "",
                    "--exclude",
                    self.config.excludes_file,
                ]
            )

        cmd.extend(["-z", self.config.irods_config])

        for metadata in self.config.file_metadata:
            cmd.extend(["-m", metadata])

        return cmd

    def log_paths(self, kind: TransferKind) -> Tuple[Path, Path]:
        """Paths of the stdout and stderr log files for a transfer kind."""
        log_dir = Path(self.config.log_dir)
        return (
            log_dir / f"{kind.log_prefix}.stdout.log",
            log_dir / f"{kind.log_prefix}.stderr.log",
        )

    async def run(self, record: TransferRecord) -> TransferStatus:
        """Run porklock for a record and leave the record in a terminal state.

        Args:
            record: The record of the request that launched this job.

        Returns:
            The terminal status written to the record.
        """
        kind = record.kind
        record.set_status(kind.running_status)
        MetricsCollector.record_transfer_started(kind.value)

        logger.info("transfer_started", kind=kind.value, record_id=record.uuid)

        start_time = time.time()
        final_status = TransferStatus.FAILED

        try:
            final_status = await self._execute(record)
        finally:
            record.mark_finished(final_status)
            MetricsCollector.record_transfer_finished(
                kind=kind.value,
                status=final_status.value,
                duration=time.time() - start_time,
            )

        return final_status

    async def _execute(self, record: TransferRecord) -> TransferStatus:
        kind = record.kind
        stdout_path, stderr_path = self.log_paths(kind)

        with ExitStack() as stack:
            try:
                stdout_file = stack.enter_context(stdout_path.open("wb"))
            except OSError as e:
                logger.error(
                    "transfer_log_open_failed",
                    kind=kind.value,
                    record_id=record.uuid,
                    path=str(stdout_path),
                    error=str(e),
                )
                return TransferStatus.FAILED

            try:
                stderr_file = stack.enter_context(stderr_path.open("wb"))
            except OSError as e:
                logger.error(
                    "transfer_log_open_failed",
                    kind=kind.value,
                    record_id=record.uuid,
                    path=str(stderr_path),
                    error=str(e),
                )
                return TransferStatus.FAILED

            cmd = self.build_command(kind)

            try:
                # nosec B603: argument vector built from configuration, no shell
                process = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=stdout_file,
                    stderr=stderr_file,
                )
            except OSError as e:
                logger.error(
                    "transfer_launch_failed",
                    kind=kind.value,
                    record_id=record.uuid,
                    executable=cmd[0],
                    error=str(e),
                )
                return TransferStatus.FAILED

            logger.info(
                "transfer_process_launched",
                kind=kind.value,
                record_id=record.uuid,
                pid=process.pid,
            )

            returncode = await process.wait()

        if returncode != 0:
            logger.error(
                "transfer_failed",
                kind=kind.value,
                record_id=record.uuid,
                returncode=returncode,
                stderr_log=str(stderr_path),
            )
            return TransferStatus.FAILED

        logger.info("transfer_completed", kind=kind.value, record_id=record.uuid)
        return TransferStatus.COMPLETED
