"""
Keystore normalization — inbound base64 text to raw PKCS#12 bytes.

Pure and synchronous. Inbound transport often sends the keystore as a data
URI and folds long base64 blobs across lines, so both are cleaned up before
decoding.
"""

from __future__ import annotations

import base64
import binascii
import re

from railway import Result

from sri_submitter.domain.errors import MalformedKeystore

_WHITESPACE = re.compile(r"\s+")


def clean_encoded_keystore(encoded: str) -> str:
    """
    Drop an optional data-URI prefix (everything up to the first comma) and
    all whitespace. Idempotent: base64 text never contains a comma.
    """
    if "," in encoded:
        encoded = encoded.split(",", 1)[1]
    return _WHITESPACE.sub("", encoded)


def normalize_keystore(encoded: str | None) -> Result[bytes]:
    """Decode an inbound keystore into raw bytes, or fail with MalformedKeystore."""
    if not encoded:
        return MalformedKeystore("Keystore is empty").to_result()
    cleaned = clean_encoded_keystore(encoded)
    # Browser uploads often drop the trailing "=" padding.
    padded = cleaned + "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError):
        return MalformedKeystore("Keystore is not valid base64").to_result()
    if not raw:
        return MalformedKeystore("Keystore decodes to zero bytes").to_result()
    return Result.success(raw)
