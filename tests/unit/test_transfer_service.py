"""Tests for the transfer service."""

import asyncio
from pathlib import Path
from typing import Callable, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from file_transfers.core.config import TransferConfig
from file_transfers.models.transfer import TransferKind, TransferStatus
from file_transfers.services.transfer_runner import TransferRunner
from file_transfers.services.transfer_service import (
    TransferNotFoundError,
    TransferService,
    configure_transfer_service,
    get_transfer_service,
    reset_transfer_service,
)
from file_transfers.testing import FakePorklock

MakeService = Callable[..., Tuple[TransferService, FakePorklock]]


@pytest.fixture
def make_service(
    make_porklock: Callable[..., FakePorklock],
    make_transfer_config: Callable[..., TransferConfig],
) -> MakeService:
    """Factory for a fresh service wired to its own fake porklock."""

    def _make(
        exit_code: int = 0, sleep: float = 0, **overrides: object
    ) -> Tuple[TransferService, FakePorklock]:
        porklock = make_porklock(exit_code=exit_code, sleep=sleep)
        service = TransferService(make_transfer_config(porklock, **overrides))
        return service, porklock

    return _make


class TestTransferServiceInitialization:
    """Tests for TransferService construction."""

    def test_lanes_start_empty_and_idle(self, make_service: MakeService) -> None:
        service, _ = make_service()

        for kind in TransferKind:
            assert service.list_records(kind) == []
            assert not service.is_running(kind)
            assert service.lane(kind).barrier.count == 0
        assert service.get_active_task_count() == 0

    def test_default_runner_uses_config(self, make_service: MakeService) -> None:
        service, _ = make_service()

        assert isinstance(service.runner, TransferRunner)
        assert service.runner.config is service.config

    def test_path_list_usable(self, make_service: MakeService, tmp_path: Path) -> None:
        service, _ = make_service()
        assert service.path_list_usable()

        service, _ = make_service(path_list_file=str(tmp_path / "missing"))
        assert not service.path_list_usable()


class TestBlockingRequests:
    """Tests for requests that wait for the in-flight job."""

    @pytest.mark.asyncio
    async def test_download_completes(self, make_service: MakeService) -> None:
        service, porklock = make_service()

        record = await service.request_transfer(TransferKind.DOWNLOAD)

        assert record.status == TransferStatus.COMPLETED
        assert record.completion_time is not None
        assert service.list_records(TransferKind.DOWNLOAD) == [record]
        assert not service.is_running(TransferKind.DOWNLOAD)
        assert len(porklock.calls()) == 1

    @pytest.mark.asyncio
    async def test_upload_completes_without_path_list(
        self, make_service: MakeService, tmp_path: Path
    ) -> None:
        service, porklock = make_service(path_list_file=str(tmp_path / "missing"))

        record = await service.request_transfer(TransferKind.UPLOAD)

        assert record.status == TransferStatus.COMPLETED
        assert " put " in porklock.calls()[0]

    @pytest.mark.asyncio
    async def test_download_without_path_list_is_not_launched(
        self, make_service: MakeService, tmp_path: Path
    ) -> None:
        service, porklock = make_service(path_list_file=str(tmp_path / "missing"))

        record = await asyncio.wait_for(
            service.request_transfer(TransferKind.DOWNLOAD), timeout=1
        )

        assert record.status == TransferStatus.REQUESTED
        assert record.completion_time is None
        assert service.list_records(TransferKind.DOWNLOAD) == [record]
        assert not service.is_running(TransferKind.DOWNLOAD)
        assert porklock.calls() == []

    @pytest.mark.asyncio
    async def test_failed_job_releases_gate(self, make_service: MakeService) -> None:
        service, porklock = make_service(exit_code=1)

        first = await service.request_transfer(TransferKind.UPLOAD)
        second = await service.request_transfer(TransferKind.UPLOAD)

        assert first.status == TransferStatus.FAILED
        assert second.status == TransferStatus.FAILED
        assert first.uuid != second.uuid
        assert len(porklock.calls()) == 2
        assert not service.is_running(TransferKind.UPLOAD)

    @pytest.mark.asyncio
    async def test_sequential_requests_each_launch(self, make_service: MakeService) -> None:
        service, porklock = make_service()

        records = [await service.request_transfer(TransferKind.DOWNLOAD) for _ in range(3)]

        assert [r.status for r in records] == [TransferStatus.COMPLETED] * 3
        assert len(porklock.calls()) == 3


class TestConcurrentRequests:
    """Tests for single-flight behaviour under concurrent requests."""

    @pytest.mark.asyncio
    async def test_concurrent_downloads_launch_once(self, make_service: MakeService) -> None:
        service, porklock = make_service(sleep=0.3)

        records = await asyncio.gather(
            *(service.request_transfer(TransferKind.DOWNLOAD) for _ in range(5))
        )

        statuses = [r.status for r in records]
        assert statuses.count(TransferStatus.COMPLETED) == 1
        assert statuses.count(TransferStatus.REQUESTED) == 4
        assert len(porklock.calls()) == 1
        assert porklock.overlaps() == []
        assert service.list_records(TransferKind.DOWNLOAD) == list(records)
        assert len({r.uuid for r in records}) == 5

    @pytest.mark.asyncio
    async def test_joiner_waits_for_running_job(self, make_service: MakeService) -> None:
        service, porklock = make_service(sleep=0.3)

        launcher = await service.request_transfer(TransferKind.UPLOAD, blocking=False)
        await asyncio.sleep(0.05)
        assert service.is_running(TransferKind.UPLOAD)

        joiner = await service.request_transfer(TransferKind.UPLOAD)

        assert launcher.status == TransferStatus.COMPLETED
        assert joiner.status == TransferStatus.REQUESTED
        assert joiner.completion_time is None
        assert len(porklock.calls()) == 1

    @pytest.mark.asyncio
    async def test_kinds_run_independently(self, make_service: MakeService) -> None:
        service, porklock = make_service(sleep=0.3)

        upload = await service.request_transfer(TransferKind.UPLOAD, blocking=False)
        download = await service.request_transfer(TransferKind.DOWNLOAD, blocking=False)
        await asyncio.sleep(0.05)

        assert service.is_running(TransferKind.UPLOAD)
        assert service.is_running(TransferKind.DOWNLOAD)

        await service.wait_idle()

        assert upload.status == TransferStatus.COMPLETED
        assert download.status == TransferStatus.COMPLETED
        assert len(porklock.calls()) == 2
        assert porklock.overlaps() == []


class TestNonBlockingRequests:
    """Tests for fire-and-forget requests."""

    @pytest.mark.asyncio
    async def test_returns_before_job_finishes(self, make_service: MakeService) -> None:
        service, _ = make_service(sleep=0.3)

        record = await service.request_transfer(TransferKind.DOWNLOAD, blocking=False)

        assert record.status == TransferStatus.REQUESTED
        assert service.is_running(TransferKind.DOWNLOAD)
        assert service.get_active_task_count() == 1

        await asyncio.sleep(0.1)
        assert record.status == TransferStatus.DOWNLOADING

        await service.wait_idle()

        assert record.status == TransferStatus.COMPLETED
        assert service.get_active_task_count() == 0
        assert not service.is_running(TransferKind.DOWNLOAD)

    @pytest.mark.asyncio
    async def test_non_blocking_joiner_returns_immediately(
        self, make_service: MakeService
    ) -> None:
        service, porklock = make_service(sleep=0.3)
        await service.request_transfer(TransferKind.UPLOAD, blocking=False)

        joiner = await asyncio.wait_for(
            service.request_transfer(TransferKind.UPLOAD, blocking=False), timeout=0.2
        )

        assert joiner.status == TransferStatus.REQUESTED
        await service.wait_idle()
        assert len(porklock.calls()) == 1

    @pytest.mark.asyncio
    async def test_wait_idle_without_jobs(self, make_service: MakeService) -> None:
        service, _ = make_service()

        await asyncio.wait_for(service.wait_idle(), timeout=1)


class TestRunnerErrors:
    """Tests for unexpected runner exceptions."""

    @pytest.mark.asyncio
    async def test_runner_exception_marks_failed_and_releases(
        self, make_service: MakeService
    ) -> None:
        service, _ = make_service()
        runner = MagicMock(spec=TransferRunner)
        runner.run = AsyncMock(side_effect=RuntimeError("boom"))
        service.runner = runner

        record = await service.request_transfer(TransferKind.DOWNLOAD)

        assert record.status == TransferStatus.FAILED
        assert record.completion_time is not None
        assert not service.is_running(TransferKind.DOWNLOAD)
        assert service.lane(TransferKind.DOWNLOAD).barrier.count == 0


class TestRecordLookup:
    """Tests for record retrieval."""

    @pytest.mark.asyncio
    async def test_get_status(self, make_service: MakeService) -> None:
        service, _ = make_service()
        record = await service.request_transfer(TransferKind.DOWNLOAD)

        assert service.get_status(TransferKind.DOWNLOAD, record.uuid) is record
        assert service.get_record(TransferKind.DOWNLOAD, record.uuid) is record

    def test_get_status_unknown_id(self, make_service: MakeService) -> None:
        service, _ = make_service()

        with pytest.raises(TransferNotFoundError, match="Download not found: nope"):
            service.get_status(TransferKind.DOWNLOAD, "nope")

        with pytest.raises(TransferNotFoundError, match="Upload not found: nope"):
            service.get_status(TransferKind.UPLOAD, "nope")

    @pytest.mark.asyncio
    async def test_histories_are_separate(self, make_service: MakeService) -> None:
        service, _ = make_service()
        upload = await service.request_transfer(TransferKind.UPLOAD)

        assert service.get_record(TransferKind.DOWNLOAD, upload.uuid) is None
        with pytest.raises(TransferNotFoundError):
            service.get_status(TransferKind.DOWNLOAD, upload.uuid)


class TestGlobalTransferService:
    """Tests for global transfer service functions."""

    def test_configure_and_get(
        self,
        make_transfer_config: Callable[..., TransferConfig],
        make_porklock: Callable[..., FakePorklock],
    ) -> None:
        try:
            service = configure_transfer_service(make_transfer_config(make_porklock()))
            assert get_transfer_service() is service
        finally:
            reset_transfer_service()

    def test_get_unconfigured_raises(self) -> None:
        reset_transfer_service()

        with pytest.raises(RuntimeError, match="not configured"):
            get_transfer_service()
