"""Testing module with a fake porklock for subprocess-level tests."""

from file_transfers.testing.fake_porklock import FakePorklock

__all__ = ["FakePorklock"]
