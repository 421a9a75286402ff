"""Error taxonomy for calls to the generative-AI service."""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    CLIENT_INITIALIZATION = "client_initialization"
    CREDENTIAL_MISSING = "credential_missing"
    RATE_LIMITED = "rate_limited"
    INVALID_CREDENTIAL = "invalid_credential"
    EMPTY_PAYLOAD = "empty_payload"
    MALFORMED_JSON = "malformed_json"
    SHAPE = "shape"
    UNKNOWN = "unknown"


class ChainTutorError(Exception):
    """Base class; every subclass carries the kind it classifies as."""

    kind: ErrorKind = ErrorKind.UNKNOWN


class ClientInitializationError(ChainTutorError):
    """Raised when the SDK rejects a credential at client construction."""

    kind = ErrorKind.CLIENT_INITIALIZATION


class CredentialMissing(ChainTutorError):
    """Raised when a slot has no credential configured."""

    kind = ErrorKind.CREDENTIAL_MISSING


class EmptyPayloadError(ChainTutorError):
    """Raised when a structured reply is empty after fence stripping."""

    kind = ErrorKind.EMPTY_PAYLOAD


class MalformedJsonError(ChainTutorError):
    """Raised when a structured reply is not valid JSON."""

    kind = ErrorKind.MALFORMED_JSON

    def __init__(self, message: str, payload: str = "") -> None:
        super().__init__(message)
        self.payload = payload


class ShapeError(ChainTutorError):
    """Raised when parsed JSON is not an array of objects."""

    kind = ErrorKind.SHAPE


class AttachmentValidationError(ValueError):
    """Raised when a file fails the mime-type or size checks."""
