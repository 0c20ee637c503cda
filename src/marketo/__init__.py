"""Async client for the Marketo REST API."""

__version__ = "0.1.0"

from .api import MarketoClient, ResponseEnvelope
from .config import MarketoSettings
from .errors import (
    ApiError,
    ApiErrorDetail,
    AuthError,
    InvalidArgumentError,
    MalformedResponseError,
    MarketoError,
    TransportError,
    UnknownCommandError,
    ValidationError,
)

__all__ = [
    "__version__",
    "MarketoClient",
    "ResponseEnvelope",
    "MarketoSettings",
    "MarketoError",
    "ApiError",
    "ApiErrorDetail",
    "AuthError",
    "InvalidArgumentError",
    "MalformedResponseError",
    "TransportError",
    "UnknownCommandError",
    "ValidationError",
]
