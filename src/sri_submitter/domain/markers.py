"""
Marker-based classification of remote responses.

The web services answer with SOAP XML; only a handful of literal status
markers matter, so responses are inspected by case-insensitive substring
match instead of being parsed.
"""

from __future__ import annotations

from sri_submitter.domain.models import AuthorizationStatus

RECEPTION_ACCEPTED_MARKER = "RECIBIDA"
AUTHORIZED_MARKER = "AUTORIZADO"
NOT_AUTHORIZED_MARKER = "NO AUTORIZADO"


def is_reception_accepted(raw_response: str) -> bool:
    return RECEPTION_ACCEPTED_MARKER.casefold() in raw_response.casefold()


def classify_authorization(raw_response: str) -> AuthorizationStatus:
    """
    AUTHORIZED, AUTHORIZATION_REJECTED, or PENDING when no marker is present.

    "AUTORIZADO" is a substring of "NO AUTORIZADO", so the rejection marker
    is checked first.
    """
    text = raw_response.casefold()
    if NOT_AUTHORIZED_MARKER.casefold() in text:
        return AuthorizationStatus.AUTHORIZATION_REJECTED
    if AUTHORIZED_MARKER.casefold() in text:
        return AuthorizationStatus.AUTHORIZED
    return AuthorizationStatus.PENDING
