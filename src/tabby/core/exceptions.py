"""
Tabby exception hierarchy.

All tabby exceptions inherit from TabbyError, making it easy for consumers
to catch library-level errors while still distinguishing specific failure modes.
"""


class TabbyError(Exception):
    """Base exception class for all tabby errors."""


class ConfigurationError(TabbyError):
    """Raised for configuration errors (missing keys, invalid values)."""


class StorageFailure(TabbyError):
    """Raised when the entry database cannot be read or written.

    Attributes:
        operation: Name of the store operation that failed (e.g. ``"update"``).
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}" if message else f"{operation} failed")


class ExportFailure(TabbyError):
    """Raised when a backup document cannot be serialized or written."""


class ImportFailure(TabbyError):
    """Raised for malformed or truncated backup documents."""
