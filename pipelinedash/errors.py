"""Exceptions raised by the dashboard read layer."""

from typing import Optional


class PipelineDashError(Exception):
    """Base class for all pipelinedash errors."""
    pass


class StorageError(PipelineDashError):
    """
    Raised when a query fails to execute or its rows cannot be read.

    A missing build or an unset pointer is never reported this way; those
    simply come back as None on the DashboardJob.
    """

    def __init__(self, operation: str, column: Optional[str] = None, message: str = ""):
        self.operation = operation
        self.column = column
        detail = f"{operation} failed"
        if column:
            detail += f" (column: {column})"
        if message:
            detail += f": {message}"
        super().__init__(detail)


class ScanError(StorageError):
    """Raised when a row cannot be decoded into a Job or Build."""
    pass
