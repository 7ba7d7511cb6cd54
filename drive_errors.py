# drive_errors.py

from typing import Optional


class DriveConfigurationError(RuntimeError):
    """Raised when a Drive backend cannot be built from the given settings."""


class DriveRequestError(RuntimeError):
    """A REST call to the Drive API failed (HTTP error status or transport error)."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
