"""
Submission service — the two operations exposed to the HTTP layer.

  submit(encoded_keystore, password, request) → SubmissionOutcome
  check_authorization(access_key)             → Result[AuthorizationCheck]

`submit` builds the document once and hands it to the state machine.
`check_authorization` needs only the access key: the environment is decoded
from the key itself, and a malformed key fails before any network call.
"""

from __future__ import annotations

import threading
from typing import Any, Mapping

import structlog
from railway import FailureDescription, LoggingExecutionContext, Result

from sri_submitter.domain.access_key import AccessKey
from sri_submitter.domain.errors import BadPassword, BuildError, FailureReason, reason_of
from sri_submitter.domain.markers import classify_authorization
from sri_submitter.domain.models import AuthorizationCheck, SubmissionOutcome, SubmissionPhase
from sri_submitter.domain.ports import DocumentBuilder, SubmissionClient
from sri_submitter.pipeline import SubmissionStateMachine, failed_outcome

log = structlog.get_logger()


def _as_build_failure(failure: FailureDescription) -> FailureDescription:
    """Builders that report a plain failure still surface as BuildError."""
    if reason_of(failure) is not FailureReason.UNKNOWN:
        return failure
    error = BuildError(failure.message)
    error.__cause__ = failure.exception
    return FailureDescription(error.code, failure.message, error)


class AuthorizationChecker:
    """Standalone authorization query by access key."""

    def __init__(self, client: SubmissionClient) -> None:
        self._client = client
        self._context = LoggingExecutionContext(operation="CheckAuthorization")

    def check(self, raw_access_key: str | None) -> Result[AuthorizationCheck]:
        """
        Query the authorization service for an access key alone.

        Idempotent; safe to call any number of times with the same key.
        """
        return self._context.execute(
            lambda: AccessKey.parse(raw_access_key).flat_map(self._query)
        )

    def _query(self, access_key: AccessKey) -> Result[AuthorizationCheck]:
        return self._client.query_authorization(access_key, access_key.environment).map(
            lambda raw: AuthorizationCheck(
                access_key=access_key,
                status=classify_authorization(raw),
                raw_response=raw,
            )
        )


class SubmissionService:
    """Facade over DocumentBuilder, SubmissionStateMachine and AuthorizationChecker."""

    def __init__(
        self,
        builder: DocumentBuilder,
        machine: SubmissionStateMachine,
        checker: AuthorizationChecker,
    ) -> None:
        self._builder = builder
        self._machine = machine
        self._checker = checker

    def submit(
        self,
        encoded_keystore: str | None,
        password: str | None,
        request: Mapping[str, Any],
        cancel: threading.Event | None = None,
    ) -> SubmissionOutcome:
        """Build, sign, submit and query authorization for one document."""
        if not password:
            missing = BadPassword("Keystore password is required")
            return failed_outcome(
                SubmissionPhase.UNSIGNED, FailureDescription(missing.code, str(missing), missing)
            )

        built = self._builder.build(request)
        if built.is_failure():
            failure = _as_build_failure(built.error())
            log.warning("submission.build_failed", error=failure.message)
            return failed_outcome(SubmissionPhase.UNSIGNED, failure)

        document = built.value()
        log.info(
            "submission.started",
            access_key=document.access_key.value,
            environment=document.environment.name,
        )
        return self._machine.run(encoded_keystore, password, document, cancel)

    def check_authorization(self, raw_access_key: str | None) -> Result[AuthorizationCheck]:
        return self._checker.check(raw_access_key)
