"""Core configuration, logging, errors, metrics and startup checks."""
