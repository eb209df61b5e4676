"""HTTP-triggered porklock upload and download launcher."""

__version__ = "1.0.0"
