"""
Domain error taxonomy.

Each error knows its classified FailureReason and the railway ErrorCode it
maps to. Errors never cross a port boundary as raised exceptions: they are
converted with `to_result()` and travel inside FailureDescription.exception,
from where `reason_of` recovers the classification downstream without
re-deriving it.
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Any

from railway import ErrorCode, FailureDescription, Result


@unique
class FailureReason(Enum):
    """Classified reason carried by a FAILED (or cancelled) outcome."""

    MALFORMED_KEYSTORE = "MalformedKeystore"
    BAD_PASSWORD = "BadPassword"
    UNREPAIRABLE_KEYSTORE = "UnrepairableKeystore"
    TOOLCHAIN_ERROR = "ToolchainError"
    TRANSPORT_ERROR = "TransportError"
    BUILD_ERROR = "BuildError"
    INVALID_ACCESS_KEY = "InvalidAccessKey"
    CANCELLED = "Cancelled"
    UNKNOWN = "Unknown"


@unique
class SignFailureKind(Enum):
    """Structured classification a signing primitive may attach to its errors."""

    BAD_PASSWORD = "BAD_PASSWORD"
    INCOMPATIBLE_KEYSTORE = "INCOMPATIBLE_KEYSTORE"


class SubmissionError(Exception):
    """Base class for all classified submission failures."""

    reason: FailureReason = FailureReason.UNKNOWN
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def to_result(self) -> Result[Any]:
        return Result.failure(self.code, str(self), self)


class MalformedKeystore(SubmissionError):
    reason = FailureReason.MALFORMED_KEYSTORE
    code = ErrorCode.VALIDATION_ERROR


class BadPassword(SubmissionError):
    """The keystore password does not match. Repair cannot help."""

    reason = FailureReason.BAD_PASSWORD
    code = ErrorCode.AUTHENTICATION_ERROR


class UnrepairableKeystore(SubmissionError):
    """A repaired keystore was produced but the signer still rejects it."""

    reason = FailureReason.UNREPAIRABLE_KEYSTORE
    code = ErrorCode.BUSINESS_RULE_ERROR


class KeystoreRepairFailed(UnrepairableKeystore):
    """
    The external toolchain itself failed.

    `stderr` is kept for diagnosis only; it can contain paths and
    environment details and is not part of the message.
    """

    reason = FailureReason.TOOLCHAIN_ERROR

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class TransportError(SubmissionError):
    """Network, DNS or timeout failure talking to the remote service."""

    reason = FailureReason.TRANSPORT_ERROR
    code = ErrorCode.EXTERNAL_SERVICE_ERROR

    def __init__(self, message: str, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out
        if timed_out:
            self.code = ErrorCode.TIMEOUT_ERROR


class InvalidAccessKey(SubmissionError):
    reason = FailureReason.INVALID_ACCESS_KEY
    code = ErrorCode.VALIDATION_ERROR


class BuildError(SubmissionError):
    """Raised by document builders; propagated as-is, never interpreted."""

    reason = FailureReason.BUILD_ERROR
    code = ErrorCode.VALIDATION_ERROR


class SubmissionCancelled(SubmissionError):
    reason = FailureReason.CANCELLED
    code = ErrorCode.TIMEOUT_ERROR


class SignError(Exception):
    """
    Error reported by an XML signing primitive.

    Primitives that can tell a wrong password from an incompatible keystore
    set `kind`; the others leave it None and only provide a message.
    """

    def __init__(self, message: str, kind: SignFailureKind | None = None) -> None:
        super().__init__(message)
        self.kind = kind


def reason_of(failure: FailureDescription) -> FailureReason:
    """Classified reason of a failure, UNKNOWN if it did not come from a SubmissionError."""
    if isinstance(failure.exception, SubmissionError):
        return failure.exception.reason
    return FailureReason.UNKNOWN


def diagnostics_of(failure: FailureDescription) -> str | None:
    """Internal diagnostic text (toolchain stderr) attached to a failure, if any."""
    if isinstance(failure.exception, KeystoreRepairFailed) and failure.exception.stderr:
        return failure.exception.stderr
    return None
