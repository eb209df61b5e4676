"""Pytest configuration and shared fixtures"""

import os
from pathlib import Path
from typing import Callable

import pytest

from file_transfers.core.config import TransferConfig
from file_transfers.testing import FakePorklock


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables before each test"""
    # Clear any APP_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("APP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def make_porklock(tmp_path: Path) -> Callable[..., FakePorklock]:
    """Factory for fake porklock executables in a fresh state directory."""
    counter = {"n": 0}

    def _make(exit_code: int = 0, sleep: float = 0) -> FakePorklock:
        counter["n"] += 1
        state_dir = tmp_path / f"porklock-{counter['n']}"
        state_dir.mkdir()
        return FakePorklock(state_dir, exit_code=exit_code, sleep=sleep)

    return _make


@pytest.fixture
def path_list_file(tmp_path: Path) -> Path:
    """Download input path list with two entries."""
    path = tmp_path / "input-path-list"
    path.write_text("/iplant/home/ipcdev/a.txt\n/iplant/home/ipcdev/b.txt\n")
    return path


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def make_transfer_config(
    tmp_path: Path, log_dir: Path, path_list_file: Path
) -> Callable[..., TransferConfig]:
    """Factory for TransferConfig pointing at a fake porklock."""

    def _make(porklock: FakePorklock, **overrides: object) -> TransferConfig:
        values = {
            "executable": str(porklock.path),
            "jar_path": "/usr/src/app/porklock-standalone.jar",
            "log_dir": str(log_dir),
            "user": "ipcdev",
            "upload_destination": "/iplant/home/ipcdev/analyses/out",
            "download_destination": str(tmp_path / "input-files"),
            "excludes_file": str(tmp_path / "excludes-file"),
            "path_list_file": str(path_list_file),
            "irods_config": str(tmp_path / "irods-config.properties"),
            "invocation_id": "inv-1234",
        }
        values.update(overrides)
        return TransferConfig(**values)

    return _make
