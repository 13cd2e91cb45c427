"""Shared infrastructure: configuration, errors, change signalling, logging."""
