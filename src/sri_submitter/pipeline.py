"""
Submission state machine — drives one prepared document from keystore to
authorization status.

  UNSIGNED ──normalize + sign──▶ SIGNED ──reception──▶ SUBMITTED
                                                          │ poll delay
                                                          ▼
                                   AUTHORIZED | PENDING | AUTHORIZATION_REJECTED

Error exits: RECEPTION_REJECTED (a valid negative answer from the
reception service) and FAILED (classified reason), reachable from any state.

Each stage returns Result[T]; the machine folds every Result into exactly
one SubmissionOutcome. Classification happens where the failure is produced
(AdaptiveSigner, adapters) and is only read back here through `reason_of`.
One authorization query per run: further polling is an external, idempotent
concern (see `polling`).
"""

from __future__ import annotations

import threading
from typing import Any

import structlog
from railway import FailureDescription

from sri_submitter.domain.access_key import AccessKey
from sri_submitter.domain.errors import (
    BuildError,
    FailureReason,
    SubmissionCancelled,
    diagnostics_of,
    reason_of,
)
from sri_submitter.domain.keystore import normalize_keystore
from sri_submitter.domain.markers import classify_authorization, is_reception_accepted
from sri_submitter.domain.models import (
    Document,
    SignedDocument,
    SubmissionOutcome,
    SubmissionPhase,
    SubmissionStatus,
)
from sri_submitter.domain.ports import SubmissionClient
from sri_submitter.signing import AdaptiveSigner

log = structlog.get_logger()

DEFAULT_POLL_DELAY_SECONDS = 2.5


def failed_outcome(
    phase: SubmissionPhase,
    failure: FailureDescription,
    access_key: AccessKey | None = None,
    signed_document: SignedDocument | None = None,
    raw_response: str | None = None,
) -> SubmissionOutcome:
    """FAILED outcome keeping the classified reason of the failure."""
    return SubmissionOutcome(
        status=SubmissionStatus.FAILED,
        phase=phase,
        access_key=access_key,
        signed_document=signed_document,
        raw_response=raw_response,
        reason=reason_of(failure),
        detail=failure.message,
        diagnostics=diagnostics_of(failure),
    )


class SubmissionStateMachine:
    """
    Normalize → Sign → Submit → (delay) → Query authorization.

    `poll_delay` is the pause between an accepted reception and the
    authorization query; the remote service needs it to finish processing.
    """

    def __init__(
        self,
        signer: AdaptiveSigner,
        client: SubmissionClient,
        poll_delay: float = DEFAULT_POLL_DELAY_SECONDS,
    ) -> None:
        self._signer = signer
        self._client = client
        self._poll_delay = poll_delay

    def run(
        self,
        encoded_keystore: str | None,
        password: str,
        document: Document,
        cancel: threading.Event | None = None,
    ) -> SubmissionOutcome:
        """
        Run one submission. Never raises for a classified failure.

        `cancel`, when set, stops the run before its next remote call.
        """
        access_key = document.access_key
        bound = log.bind(access_key=access_key.value, environment=document.environment.name)

        if access_key.environment is not document.environment:
            mismatch = BuildError("Document environment does not match its access key")
            bound.warning("submission.environment_mismatch")
            return failed_outcome(
                SubmissionPhase.UNSIGNED,
                FailureDescription(mismatch.code, str(mismatch), mismatch),
                access_key,
            )

        signed = normalize_keystore(encoded_keystore).flat_map(
            lambda keystore: self._signer.sign(keystore, password, document)
        )
        if signed.is_failure():
            bound.warning("submission.signing_failed", reason=reason_of(signed.error()).value)
            return failed_outcome(SubmissionPhase.UNSIGNED, signed.error(), access_key)

        signed_document = signed.value()
        if cancel is not None and cancel.is_set():
            bound.info("submission.cancelled", phase=SubmissionPhase.SIGNED.value)
            cancelled = SubmissionCancelled("Submission cancelled before reception")
            return failed_outcome(
                SubmissionPhase.SIGNED,
                FailureDescription(cancelled.code, str(cancelled), cancelled),
                access_key,
                signed_document,
            )
        return self._submit(signed_document, cancel, bound)

    def _submit(
        self,
        signed_document: SignedDocument,
        cancel: threading.Event | None,
        bound: Any,
    ) -> SubmissionOutcome:
        access_key = signed_document.access_key
        reception = self._client.submit_for_reception(signed_document, signed_document.environment)
        if reception.is_failure():
            bound.warning("submission.reception_unreachable", error=reception.error().message)
            return failed_outcome(SubmissionPhase.SIGNED, reception.error(), access_key, signed_document)

        reception_text = reception.value()
        if not is_reception_accepted(reception_text):
            bound.info("submission.reception_rejected")
            return SubmissionOutcome(
                status=SubmissionStatus.RECEPTION_REJECTED,
                phase=SubmissionPhase.SIGNED,
                access_key=access_key,
                signed_document=signed_document,
                raw_response=reception_text,
            )

        bound.info("submission.received", poll_delay_seconds=self._poll_delay)
        if self._wait_before_polling(cancel):
            bound.info("submission.cancelled", phase=SubmissionPhase.SUBMITTED.value)
            return SubmissionOutcome(
                status=SubmissionStatus.ACCEPTED,
                phase=SubmissionPhase.SUBMITTED,
                access_key=access_key,
                signed_document=signed_document,
                raw_response=reception_text,
                reason=FailureReason.CANCELLED,
                detail="Received; authorization not queried because the submission was cancelled",
            )

        authorization = self._client.query_authorization(access_key, signed_document.environment)
        if authorization.is_failure():
            bound.warning("submission.authorization_unreachable", error=authorization.error().message)
            return failed_outcome(
                SubmissionPhase.SUBMITTED,
                authorization.error(),
                access_key,
                signed_document,
                raw_response=reception_text,
            )

        authorization_text = authorization.value()
        status = SubmissionStatus(classify_authorization(authorization_text).value)
        bound.info("submission.completed", status=status.value)
        return SubmissionOutcome(
            status=status,
            phase=SubmissionPhase.AUTHORIZATION_QUERIED,
            access_key=access_key,
            signed_document=signed_document,
            raw_response=authorization_text,
        )

    def _wait_before_polling(self, cancel: threading.Event | None) -> bool:
        """Sleep for the poll delay; True when cancelled before or during it."""
        event = cancel if cancel is not None else threading.Event()
        if self._poll_delay <= 0:
            return event.is_set()
        return event.wait(self._poll_delay)
