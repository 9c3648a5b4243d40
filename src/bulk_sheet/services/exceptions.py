"""Domain-specific exceptions raised by writers, sinks and converters."""


class BulkSheetError(Exception):
    """Base class for every error surfaced by the package."""


class SinkUnavailableError(BulkSheetError):
    """Raised when a destination cannot be opened or created."""


class WriteFailureError(BulkSheetError):
    """Raised when an I/O error interrupts an in-progress write."""


class SourceReadError(BulkSheetError):
    """Raised when a conversion source is missing, unreadable or undecodable."""


class EncodeError(BulkSheetError):
    """Raised when the spreadsheet encoder rejects a row or a limit is exceeded."""


class MisuseError(BulkSheetError):
    """Raised on write after close, overlapping writes or a repeated close."""


class ConversionCancelledError(BulkSheetError):
    """Raised when a caller-supplied cancellation hook stops a conversion."""


class SamePathError(MisuseError, ValueError):
    """Raised when a conversion's source and destination are the same file."""
