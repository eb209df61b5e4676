"""API endpoints."""

from file_transfers.api import health, metrics, transfers

__all__ = [
    "health",
    "metrics",
    "transfers",
]
