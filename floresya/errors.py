"""Exceptions raised by the FloresYa client."""
from typing import Iterable, Optional


class FloresYaError(Exception):
    """Base exception for all FloresYa client errors."""

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)
        self.message = message


class NotFoundError(FloresYaError):
    """The requested resource does not exist server-side."""


class NetworkError(FloresYaError):
    """The request never produced a response (connection refused, timeout...)."""


class ApiError(FloresYaError):
    """The API answered with an error envelope or a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationError(FloresYaError):
    """Input rejected before anything was sent or stored."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields = list(fields)


class NavigationError(FloresYaError):
    """The navigator could not open the target page."""
