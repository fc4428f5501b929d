"""
Shared test fixtures for the sri-submitter test suite.

Provides well-formed access keys and documents for both environments,
an encoded keystore blob, and a factory for fake `openssl` executables
(POSIX shell scripts) that stand in for the real toolchain.
"""

from __future__ import annotations

import base64
import sys
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest

from sri_submitter.domain.access_key import AccessKey, Environment
from sri_submitter.domain.models import Document

KEYSTORE_BYTES = b"\x30\x82\x0a\x01fake-pkcs12-container"
KEYSTORE_PASSWORD = "s3cret-pass"


def build_access_key(environment: Environment, sequential: str = "123") -> AccessKey:
    return AccessKey.compose(
        issue_date=date(2026, 10, 19),
        document_type="01",
        taxpayer_id="1790011223001",
        environment=environment,
        series="001001",
        sequential=sequential,
        numeric_code="12345678",
    )


@pytest.fixture()
def test_access_key() -> AccessKey:
    """Access key with environment digit 1 (TEST)."""
    return build_access_key(Environment.TEST)


@pytest.fixture()
def production_access_key() -> AccessKey:
    """Access key with environment digit 2 (PRODUCTION)."""
    return build_access_key(Environment.PRODUCTION)


@pytest.fixture()
def document(test_access_key: AccessKey) -> Document:
    """An unsigned TEST-environment invoice."""
    return Document(
        xml='<factura id="comprobante" version="1.0.0"><infoTributaria/></factura>',
        access_key=test_access_key,
        environment=Environment.TEST,
    )


@pytest.fixture()
def keystore_bytes() -> bytes:
    return KEYSTORE_BYTES


@pytest.fixture()
def keystore_password() -> str:
    """The password the fake toolchain accepts."""
    return KEYSTORE_PASSWORD


@pytest.fixture()
def encoded_keystore() -> str:
    """The keystore as a data URI, folded across lines like real uploads."""
    encoded = base64.b64encode(KEYSTORE_BYTES).decode("ascii")
    folded = "\n".join(encoded[i : i + 16] for i in range(0, len(encoded), 16))
    return f"data:application/x-pkcs12;base64,{folded}"


_FAKE_OPENSSL = """#!/bin/sh
printf '%s\\n' "$*" >> "{log}"
mode=decode; in=""; key=""; out=""
while [ $# -gt 0 ]; do
  case "$1" in
    -export) mode=encode ;;
    -in) shift; in="$1" ;;
    -inkey) shift; key="$1" ;;
    -out) shift; out="$1" ;;
  esac
  shift
done
{body}
"""

_BEHAVIORS = {
    "ok": """
if [ "$mode" = decode ]; then
  [ "$SRI_SUBMITTER_KEYSTORE_PASSWORD" = "{password}" ] || {{ echo "Mac verify error: invalid password?" >&2; exit 1; }}
  printf 'PEM:'; cat "$in"
else
  [ "$(head -c 4 "$key" 2>/dev/null)" = "PEM:" ] || {{ echo "Could not read private key from -inkey file" >&2; exit 1; }}
  {{ printf 'REPAIRED:'; cat "$in"; }} > "$out"
fi
""",
    "fail": """
if [ "$mode" = decode ]; then
  echo "Error outputting keys and certificates: unsupported /tmp/secret-path" >&2; exit 1
else
  cat "$in" "$key" > /dev/null; : > "$out"
fi
""",
    "encode_fail": """
if [ "$mode" = decode ]; then
  printf 'PEM:'; cat "$in"
else
  cat "$in" "$key" > /dev/null
  echo "Could not read any certificates from -in file" >&2; exit 1
fi
""",
    "empty": """
if [ "$mode" = decode ]; then cat "$in"; else cat "$in" "$key" > /dev/null; : > "$out"; fi
""",
    "hang": """
if [ "$mode" = decode ]; then exec sleep 5; else cat "$in" "$key" > /dev/null; fi
""",
}


@pytest.fixture()
def fake_openssl(tmp_path: Path) -> Callable[[str], tuple[Path, Path]]:
    """
    Factory: write a fake openssl with the given behavior.

    Returns (executable, invocation_log). Behaviors: ok, fail, encode_fail, empty, hang.
    """
    if sys.platform == "win32":
        pytest.skip("fake toolchain is a POSIX shell script")

    def _make(behavior: str) -> tuple[Path, Path]:
        log = tmp_path / f"openssl-{behavior}.log"
        script = tmp_path / f"openssl-{behavior}"
        body = _BEHAVIORS[behavior].format(password=KEYSTORE_PASSWORD)
        script.write_text(_FAKE_OPENSSL.format(log=log, body=body))
        script.chmod(0o755)
        return script, log

    return _make
