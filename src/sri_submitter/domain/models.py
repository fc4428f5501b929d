"""
Domain models — immutable value objects for documents, endpoints and outcomes.

These are pure value objects with no behavior beyond self-description.
A submission produces exactly one SubmissionOutcome; nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, unique

from sri_submitter.domain.access_key import AccessKey, Environment
from sri_submitter.domain.errors import FailureReason


@dataclass(frozen=True, slots=True)
class Document:
    """
    A prepared, unsigned tax document.

    `environment` is the explicit environment chosen by the document's
    `ambiente` field; `access_key` encodes the same value at index 23.
    """

    xml: str = field(repr=False)
    access_key: AccessKey
    environment: Environment


@dataclass(frozen=True, slots=True)
class SignedDocument:
    """A Document plus its signature envelope. `xml` is the full signed text."""

    xml: str = field(repr=False)
    access_key: AccessKey
    environment: Environment

    @staticmethod
    def of(document: Document, signed_xml: str) -> SignedDocument:
        return SignedDocument(
            xml=signed_xml,
            access_key=document.access_key,
            environment=document.environment,
        )


@dataclass(frozen=True, slots=True)
class EndpointPair:
    """Reception and authorization web service URLs for one environment."""

    reception_url: str
    authorization_url: str


@dataclass(frozen=True, slots=True)
class EndpointTable:
    """
    Immutable Environment → EndpointPair lookup, built once at startup
    and passed explicitly into the SOAP client.
    """

    test: EndpointPair
    production: EndpointPair

    def for_environment(self, environment: Environment) -> EndpointPair:
        return self.production if environment is Environment.PRODUCTION else self.test


@unique
class SubmissionStatus(StrEnum):
    """Terminal outcome tags of one submission attempt."""

    ACCEPTED = "ACCEPTED"
    RECEPTION_REJECTED = "RECEPTION_REJECTED"
    AUTHORIZED = "AUTHORIZED"
    PENDING = "PENDING"
    AUTHORIZATION_REJECTED = "AUTHORIZATION_REJECTED"
    FAILED = "FAILED"


@unique
class SubmissionPhase(StrEnum):
    """Furthest phase a submission reached."""

    UNSIGNED = "UNSIGNED"
    SIGNED = "SIGNED"
    SUBMITTED = "SUBMITTED"
    AUTHORIZATION_QUERIED = "AUTHORIZATION_QUERIED"


@unique
class AuthorizationStatus(StrEnum):
    """Classification of an authorization web service response."""

    AUTHORIZED = "AUTHORIZED"
    AUTHORIZATION_REJECTED = "AUTHORIZATION_REJECTED"
    PENDING = "PENDING"


@dataclass(frozen=True, slots=True)
class AuthorizationCheck:
    """Result of one (idempotent) authorization query for an access key."""

    access_key: AccessKey
    status: AuthorizationStatus
    raw_response: str = field(repr=False)

    @property
    def submission_status(self) -> SubmissionStatus:
        return SubmissionStatus(self.status.value)


@dataclass(frozen=True, slots=True)
class SubmissionOutcome:
    """
    The single result record of a submission attempt.

    `raw_response` is the last remote response text (reception or
    authorization). `detail` is a caller-safe message; `diagnostics`
    holds internal details (toolchain stderr) that must only be exposed
    to trusted callers.
    """

    status: SubmissionStatus
    phase: SubmissionPhase
    access_key: AccessKey | None = None
    signed_document: SignedDocument | None = None
    raw_response: str | None = field(default=None, repr=False)
    reason: FailureReason | None = None
    detail: str | None = None
    diagnostics: str | None = field(default=None, repr=False)

    @property
    def is_failure(self) -> bool:
        return self.status is SubmissionStatus.FAILED
