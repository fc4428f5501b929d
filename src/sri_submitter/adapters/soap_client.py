"""
SOAP adapter — reception and authorization web services via httpx.

Adapter layer — implements the SubmissionClient port using httpx for sync
HTTP calls. Each operation POSTs a fixed SOAP envelope as text/xml to the
environment's endpoint and returns the response body verbatim, whatever
the HTTP status: a SOAP fault is still an answer for the caller to read.

No retries here. Transport failures (DNS, connect, timeout) are captured
into Result failures carrying a TransportError — no exceptions leak to the
business logic layer.
"""

from __future__ import annotations

import base64

import httpx
import structlog
from railway.result import Result

from sri_submitter.domain.access_key import AccessKey, Environment
from sri_submitter.domain.errors import TransportError
from sri_submitter.domain.models import EndpointTable, SignedDocument

log = structlog.get_logger()

SOAP_HEADERS = {"Content-Type": "text/xml;charset=UTF-8"}

RECEPTION_NAMESPACE = "http://ec.gob.sri.ws.recepcion"
AUTHORIZATION_NAMESPACE = "http://ec.gob.sri.ws.autorizacion"

_RECEPTION_ENVELOPE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    f'xmlns:ec="{RECEPTION_NAMESPACE}">'
    "<soapenv:Header/>"
    "<soapenv:Body>"
    "<ec:validarComprobante><xml>{payload}</xml></ec:validarComprobante>"
    "</soapenv:Body>"
    "</soapenv:Envelope>"
)

_AUTHORIZATION_ENVELOPE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    f'xmlns:ec="{AUTHORIZATION_NAMESPACE}">'
    "<soapenv:Header/>"
    "<soapenv:Body>"
    "<ec:autorizacionComprobante>"
    "<claveAccesoComprobante>{access_key}</claveAccesoComprobante>"
    "</ec:autorizacionComprobante>"
    "</soapenv:Body>"
    "</soapenv:Envelope>"
)


def reception_envelope(signed_xml: str) -> str:
    """validarComprobante envelope with the signed XML base64-encoded."""
    payload = base64.b64encode(signed_xml.encode("utf-8")).decode("ascii")
    return _RECEPTION_ENVELOPE.format(payload=payload)


def authorization_envelope(access_key: AccessKey) -> str:
    """autorizacionComprobante envelope for one access key."""
    return _AUTHORIZATION_ENVELOPE.format(access_key=access_key.value)


class HttpSubmissionClient:
    """
    Talk to the SRI offline web services.

    Implements the SubmissionClient port. Endpoints come from an
    EndpointTable injected at construction; TEST and PRODUCTION never mix.
    """

    def __init__(self, endpoints: EndpointTable, timeout: float = 30) -> None:
        self._endpoints = endpoints
        self._timeout = timeout

    def submit_for_reception(self, document: SignedDocument, environment: Environment) -> Result[str]:
        """
        POST validarComprobante to the environment's reception endpoint.

        Returns Result[str] with the raw response body on success,
        or Result.failure(TransportError) when the service cannot be reached.
        """
        url = self._endpoints.for_environment(environment).reception_url
        return self._post(
            url,
            reception_envelope(document.xml),
            operation="reception",
            access_key=document.access_key.value,
        )

    def query_authorization(self, access_key: AccessKey, environment: Environment) -> Result[str]:
        """
        POST autorizacionComprobante to the environment's authorization endpoint.

        Safe to call any number of times for the same access key.
        """
        url = self._endpoints.for_environment(environment).authorization_url
        return self._post(
            url,
            authorization_envelope(access_key),
            operation="authorization",
            access_key=access_key.value,
        )

    def _post(self, url: str, envelope: str, operation: str, access_key: str) -> Result[str]:
        try:
            with httpx.Client(timeout=self._timeout) as client:
                response = client.post(url, content=envelope.encode("utf-8"), headers=SOAP_HEADERS)
        except httpx.TimeoutException as e:
            log.warning("sri.request_timeout", operation=operation, access_key=access_key)
            return TransportError(f"{operation} request timed out: {e}", timed_out=True).to_result()
        except httpx.HTTPError as e:
            log.warning("sri.request_failed", operation=operation, access_key=access_key, error=str(e))
            return TransportError(f"{operation} request failed: {e}").to_result()

        log.info(
            "sri.response_received",
            operation=operation,
            access_key=access_key,
            status_code=response.status_code,
            size_bytes=len(response.content),
        )
        return Result.success(response.text)
