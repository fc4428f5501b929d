"""
Response payloads for the HTTP layer.

Business outcomes (received, rejected, authorized, pending) are valid
answers from the remote service and map to HTTP 200. Only FAILED maps to an
error status, through railway's HttpStatusMapper. Toolchain diagnostics are
included only for trusted deployments (`expose_diagnostics`).
"""

from __future__ import annotations

from typing import Any

from railway import ErrorCode, Result
from railway.http_support import HttpStatusMapper, build_response

from sri_submitter.domain.errors import FailureReason
from sri_submitter.domain.models import AuthorizationCheck, SubmissionOutcome

_CODE_BY_REASON: dict[FailureReason, ErrorCode] = {
    FailureReason.MALFORMED_KEYSTORE: ErrorCode.VALIDATION_ERROR,
    FailureReason.BAD_PASSWORD: ErrorCode.AUTHENTICATION_ERROR,
    FailureReason.UNREPAIRABLE_KEYSTORE: ErrorCode.BUSINESS_RULE_ERROR,
    FailureReason.TOOLCHAIN_ERROR: ErrorCode.BUSINESS_RULE_ERROR,
    FailureReason.TRANSPORT_ERROR: ErrorCode.EXTERNAL_SERVICE_ERROR,
    FailureReason.BUILD_ERROR: ErrorCode.VALIDATION_ERROR,
    FailureReason.INVALID_ACCESS_KEY: ErrorCode.VALIDATION_ERROR,
    FailureReason.CANCELLED: ErrorCode.TIMEOUT_ERROR,
    FailureReason.UNKNOWN: ErrorCode.UNKNOWN_ERROR,
}


def http_status_for(outcome: SubmissionOutcome) -> int:
    if not outcome.is_failure:
        return 200
    return HttpStatusMapper.map_error_code(_CODE_BY_REASON[outcome.reason or FailureReason.UNKNOWN])


def outcome_to_payload(outcome: SubmissionOutcome, expose_diagnostics: bool = False) -> tuple[dict[str, Any], int]:
    """Serialize a SubmissionOutcome into a (body, status_code) pair."""
    body: dict[str, Any] = {
        "status": outcome.status.value,
        "phase": outcome.phase.value,
        "accessKey": outcome.access_key.value if outcome.access_key else None,
        "signedXml": outcome.signed_document.xml if outcome.signed_document else None,
        "response": outcome.raw_response,
    }
    if outcome.reason is not None:
        body["reason"] = outcome.reason.value
        body["detail"] = outcome.detail
    if expose_diagnostics and outcome.diagnostics:
        body["diagnostics"] = outcome.diagnostics
    return body, http_status_for(outcome)


def check_to_payload(result: Result[AuthorizationCheck]) -> tuple[Any, int]:
    """Serialize a standalone authorization check into a (body, status_code) pair."""
    return build_response(
        result.map(
            lambda check: {
                "accessKey": check.access_key.value,
                "status": check.status.value,
                "environment": check.access_key.environment.name,
                "response": check.raw_response,
            }
        )
    )
