"""
Adaptive signing — sign with the keystore as given, repair it once if the
signer cannot read it, and classify what went wrong otherwise.

Per call:

  TRY_ORIGINAL ──signed──────────────────────────────▶ SIGNED
       │ bad password ────────────────────────────────▶ FAILED_BAD_PASSWORD
       │ anything else
       ▼
  TRY_REPAIRED ──repair failed────────────────────────▶ FAILED_UNREPAIRABLE (toolchain)
       │ repaired ──signed────────────────────────────▶ SIGNED
       │          └─still rejected────────────────────▶ FAILED_UNREPAIRABLE

At most one signing attempt with the original keystore and one with a
repaired keystore. Repair shells out twice, so it is never attempted for a
wrong password and never looped.
"""

from __future__ import annotations

import structlog
from railway import FailureDescription, Result

from sri_submitter.domain.errors import (
    BadPassword,
    KeystoreRepairFailed,
    SignError,
    SignFailureKind,
    UnrepairableKeystore,
)
from sri_submitter.domain.models import Document, SignedDocument
from sri_submitter.domain.ports import KeystoreRepairer, XmlSigner

log = structlog.get_logger()

# Compatibility shim for signing primitives that only report a message.
# Lower-cased fragments that mean "the password does not match the keystore".
BAD_PASSWORD_MARKERS: tuple[str, ...] = (
    "invalid password",
    "wrong password",
    "incorrect password",
    "mac could not be verified",
    "mac verify failure",
    "mac verify error",
)


def classify_sign_failure(failure: FailureDescription) -> SignFailureKind:
    """
    Decide whether a signing failure is a wrong password or an incompatible keystore.

    A structured SignError.kind wins; the message is only inspected when the
    primitive gave no structured signal.
    """
    if isinstance(failure.exception, SignError) and failure.exception.kind is not None:
        return failure.exception.kind
    text = failure.message.lower()
    if failure.exception is not None:
        text = f"{text} {failure.exception}".lower()
    if any(marker in text for marker in BAD_PASSWORD_MARKERS):
        return SignFailureKind.BAD_PASSWORD
    return SignFailureKind.INCOMPATIBLE_KEYSTORE


class AdaptiveSigner:
    """Produce a SignedDocument from a possibly incompatible keystore."""

    def __init__(self, signer: XmlSigner, repairer: KeystoreRepairer) -> None:
        self._signer = signer
        self._repairer = repairer

    def sign(self, keystore: bytes, password: str, document: Document) -> Result[SignedDocument]:
        """
        Returns Result[SignedDocument], or a failure carrying BadPassword,
        UnrepairableKeystore or KeystoreRepairFailed.
        """
        first = self._signer.sign(keystore, password, document.xml)
        if first.is_success():
            log.info("signing.signed", access_key=document.access_key.value, repaired=False)
            return Result.success(SignedDocument.of(document, first.value()))

        kind = classify_sign_failure(first.error())
        if kind is SignFailureKind.BAD_PASSWORD:
            log.warning("signing.bad_password", access_key=document.access_key.value)
            return BadPassword("Keystore password is incorrect").to_result()

        log.info(
            "signing.repair_needed",
            access_key=document.access_key.value,
            signer_error=first.error().message,
        )
        return self._repairer.repair(keystore, password).either(
            on_success=lambda repaired: self._sign_repaired(repaired, password, document),
            on_failure=self._repair_failed,
        )

    def _sign_repaired(self, repaired: bytes, password: str, document: Document) -> Result[SignedDocument]:
        if not repaired:
            return KeystoreRepairFailed("Keystore repair produced no usable bytes").to_result()
        second = self._signer.sign(repaired, password, document.xml)
        if second.is_success():
            log.info("signing.signed", access_key=document.access_key.value, repaired=True)
            return Result.success(SignedDocument.of(document, second.value()))
        log.warning(
            "signing.unrepairable",
            access_key=document.access_key.value,
            signer_error=second.error().message,
        )
        return UnrepairableKeystore(
            "Keystore could not be used even after re-encoding; re-export it from the issuer"
        ).to_result()

    @staticmethod
    def _repair_failed(error: FailureDescription) -> Result[SignedDocument]:
        if isinstance(error.exception, KeystoreRepairFailed):
            return Result.failure_from(error)
        return KeystoreRepairFailed(error.message).to_result()
