"""
Ports — Protocol-based interfaces for collaborators and infrastructure adapters.

These define WHAT the submission core needs without specifying HOW:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters and test fakes
satisfy the contract simply by implementing the methods.

Flow:
  1. DocumentBuilder     → Document (xml + access key + environment)
  2. XmlSigner           → signed XML text (the signing primitive)
  3. KeystoreRepairer    → re-encoded keystore when the signer rejects the original
  4. SubmissionClient    → reception, then authorization, raw SOAP responses
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from railway.result import Result

from sri_submitter.domain.access_key import AccessKey, Environment
from sri_submitter.domain.models import Document, SignedDocument


@runtime_checkable
class DocumentBuilder(Protocol):
    """
    Port: build the unsigned document and derive its access key.

    Called exactly once per submission. Identical input must yield an
    identical access key. Failures carry a BuildError.
    """

    def build(self, request: Mapping[str, Any]) -> Result[Document]: ...


@runtime_checkable
class XmlSigner(Protocol):
    """
    Port: the XML signing primitive.

    Returns Result[str] with the signed XML. On failure the description's
    message is the primitive's own error text; a SignError with a `kind`
    in FailureDescription.exception gives a structured classification.
    """

    def sign(self, keystore: bytes, password: str, xml: str) -> Result[str]: ...


@runtime_checkable
class KeystoreRepairer(Protocol):
    """
    Port: re-encode a keystore into a legacy cipher the signer accepts.

    Always returns NEW bytes; the input is never modified. Failures carry
    a KeystoreRepairFailed with the toolchain stderr.
    """

    def repair(self, keystore: bytes, password: str) -> Result[bytes]: ...


@runtime_checkable
class SubmissionClient(Protocol):
    """
    Port: the two remote web service operations.

    Both return the raw response body verbatim; interpretation belongs to
    the caller. No retries at this layer; failures carry a TransportError.
    """

    def submit_for_reception(self, document: SignedDocument, environment: Environment) -> Result[str]: ...

    def query_authorization(self, access_key: AccessKey, environment: Environment) -> Result[str]: ...
