"""Exception types shared across the service."""
from typing import Iterable, Optional


class ConfigError(Exception):
    """A required setting is missing or malformed. Fatal at startup."""

    def __init__(self, message: str, names: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.names = list(names or [])


class BackendError(Exception):
    """The remote database call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
