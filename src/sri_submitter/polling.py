"""
Out-of-band authorization polling.

The submission state machine queries authorization once. Callers that want
to wait for a final status re-run the idempotent check with this helper:
tenacity repeats it while the status is PENDING, at a fixed interval, for a
bounded number of attempts, and returns the last result. Transport failures
are returned as-is, not retried.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from railway.result import Result
from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_fixed

from sri_submitter.domain.models import AuthorizationCheck, AuthorizationStatus

log = structlog.get_logger()


def _still_pending(result: Result[AuthorizationCheck]) -> bool:
    return result.is_success() and result.value().status is AuthorizationStatus.PENDING


def _log_attempt(state: RetryCallState) -> None:
    log.info("authorization.still_pending", attempt=state.attempt_number)


def _last_result(state: RetryCallState) -> Result[AuthorizationCheck]:
    assert state.outcome is not None
    return state.outcome.result()


def poll_authorization(
    check: Callable[[], Result[AuthorizationCheck]],
    attempts: int = 5,
    interval: float = 3.0,
) -> Result[AuthorizationCheck]:
    """
    Call `check` until it is no longer PENDING or `attempts` run out.

    Returns the final Result; a PENDING Success after the last attempt means
    the remote service has still not decided.
    """
    retrying = Retrying(
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_fixed(interval),
        retry=retry_if_result(_still_pending),
        after=_log_attempt,
        retry_error_callback=_last_result,
    )
    return retrying(check)
