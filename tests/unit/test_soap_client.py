"""
Unit tests for the SOAP adapter — reception and authorization web services.

Uses respx to mock httpx HTTP calls (never makes real HTTP requests).

Test categories:
  - Envelopes: operation names, namespaces, base64 payload, access key
  - Routing: TEST and PRODUCTION documents reach their own hosts
  - Bodies: returned verbatim whatever the HTTP status
  - Transport: timeouts and connection errors → TransportError (never raises)
"""

from __future__ import annotations

import base64

import httpx
import pytest
import respx
from railway import ErrorCode, ResultAssertions

from sri_submitter.adapters.soap_client import (
    AUTHORIZATION_NAMESPACE,
    RECEPTION_NAMESPACE,
    HttpSubmissionClient,
    authorization_envelope,
    reception_envelope,
)
from sri_submitter.domain.access_key import AccessKey, Environment
from sri_submitter.domain.errors import FailureReason, TransportError, reason_of
from sri_submitter.domain.models import EndpointPair, EndpointTable, SignedDocument

TEST_RECEPTION = "https://test.sri.example/ws/RecepcionComprobantesOffline?wsdl"
TEST_AUTHORIZATION = "https://test.sri.example/ws/AutorizacionComprobantesOffline?wsdl"
PROD_RECEPTION = "https://prod.sri.example/ws/RecepcionComprobantesOffline?wsdl"
PROD_AUTHORIZATION = "https://prod.sri.example/ws/AutorizacionComprobantesOffline?wsdl"

SIGNED_XML = '<factura id="comprobante"><ds:Signature>…</ds:Signature></factura>'


@pytest.fixture()
def endpoints() -> EndpointTable:
    return EndpointTable(
        test=EndpointPair(reception_url=TEST_RECEPTION, authorization_url=TEST_AUTHORIZATION),
        production=EndpointPair(reception_url=PROD_RECEPTION, authorization_url=PROD_AUTHORIZATION),
    )


@pytest.fixture()
def client(endpoints: EndpointTable) -> HttpSubmissionClient:
    return HttpSubmissionClient(endpoints=endpoints, timeout=5)


def _signed(access_key: AccessKey) -> SignedDocument:
    return SignedDocument(xml=SIGNED_XML, access_key=access_key, environment=access_key.environment)


class TestEnvelopes:
    def test_reception_envelope_carries_base64_document(self) -> None:
        envelope = reception_envelope(SIGNED_XML)
        encoded = envelope.split("<xml>")[1].split("</xml>")[0]

        assert "<ec:validarComprobante>" in envelope
        assert f'xmlns:ec="{RECEPTION_NAMESPACE}"' in envelope
        assert base64.b64decode(encoded).decode("utf-8") == SIGNED_XML

    def test_authorization_envelope_carries_access_key(self, production_access_key: AccessKey) -> None:
        envelope = authorization_envelope(production_access_key)

        assert "<ec:autorizacionComprobante>" in envelope
        assert f'xmlns:ec="{AUTHORIZATION_NAMESPACE}"' in envelope
        assert f"<claveAccesoComprobante>{production_access_key.value}</claveAccesoComprobante>" in envelope


class TestReception:
    """
    GIVEN a signed document
    WHEN submit_for_reception is called
    THEN the envelope is POSTed as text/xml to the environment's reception URL.
    """

    @respx.mock
    def test_posts_envelope_to_test_host(self, client: HttpSubmissionClient, test_access_key: AccessKey) -> None:
        route = respx.post(TEST_RECEPTION).mock(return_value=httpx.Response(200, text="<estado>RECIBIDA</estado>"))

        result = client.submit_for_reception(_signed(test_access_key), Environment.TEST)

        assert ResultAssertions.assert_success(result) == "<estado>RECIBIDA</estado>"
        request = route.calls.last.request
        assert request.headers["Content-Type"] == "text/xml;charset=UTF-8"
        assert request.content.decode("utf-8") == reception_envelope(SIGNED_XML)

    @respx.mock
    def test_production_never_hits_test_host(
        self, client: HttpSubmissionClient, production_access_key: AccessKey
    ) -> None:
        prod = respx.post(PROD_RECEPTION).mock(return_value=httpx.Response(200, text="ok"))
        test = respx.post(TEST_RECEPTION).mock(return_value=httpx.Response(200, text="ok"))

        client.submit_for_reception(_signed(production_access_key), Environment.PRODUCTION)

        assert prod.call_count == 1
        assert test.call_count == 0

    @respx.mock
    def test_soap_fault_body_is_returned(self, client: HttpSubmissionClient, test_access_key: AccessKey) -> None:
        fault = "<soap:Fault><faultstring>Unmarshalling Error</faultstring></soap:Fault>"
        respx.post(TEST_RECEPTION).mock(return_value=httpx.Response(500, text=fault))

        result = client.submit_for_reception(_signed(test_access_key), Environment.TEST)

        assert ResultAssertions.assert_success(result) == fault


class TestAuthorization:
    @respx.mock
    def test_posts_access_key_to_production_host(
        self, client: HttpSubmissionClient, production_access_key: AccessKey
    ) -> None:
        route = respx.post(PROD_AUTHORIZATION).mock(
            return_value=httpx.Response(200, text="<estado>AUTORIZADO</estado>")
        )

        result = client.query_authorization(production_access_key, Environment.PRODUCTION)

        assert ResultAssertions.assert_success(result) == "<estado>AUTORIZADO</estado>"
        assert production_access_key.value in route.calls.last.request.content.decode("utf-8")

    @respx.mock
    def test_repeated_queries_are_independent(self, client: HttpSubmissionClient, test_access_key: AccessKey) -> None:
        route = respx.post(TEST_AUTHORIZATION).mock(return_value=httpx.Response(200, text="<autorizaciones/>"))

        first = client.query_authorization(test_access_key, Environment.TEST)
        second = client.query_authorization(test_access_key, Environment.TEST)

        assert first.value() == second.value()
        assert route.call_count == 2


class TestTransportFailures:
    """
    GIVEN a remote service that cannot be reached
    WHEN any operation is called
    THEN a TransportError failure is returned and nothing raises.
    """

    @respx.mock
    def test_timeout(self, client: HttpSubmissionClient, test_access_key: AccessKey) -> None:
        respx.post(TEST_AUTHORIZATION).mock(side_effect=httpx.ReadTimeout("read timed out"))

        result = client.query_authorization(test_access_key, Environment.TEST)

        error = ResultAssertions.assert_failure(result, ErrorCode.TIMEOUT_ERROR)
        assert reason_of(error) is FailureReason.TRANSPORT_ERROR
        assert isinstance(error.exception, TransportError)
        assert error.exception.timed_out

    @respx.mock
    def test_connection_refused(self, client: HttpSubmissionClient, test_access_key: AccessKey) -> None:
        respx.post(TEST_RECEPTION).mock(side_effect=httpx.ConnectError("connection refused"))

        result = client.submit_for_reception(_signed(test_access_key), Environment.TEST)

        error = ResultAssertions.assert_failure(result, ErrorCode.EXTERNAL_SERVICE_ERROR)
        assert reason_of(error) is FailureReason.TRANSPORT_ERROR
        ResultAssertions.assert_failure_message_contains(result, "connection refused")
