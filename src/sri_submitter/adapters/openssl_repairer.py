"""
OpenSSL keystore repair adapter — implements the KeystoreRepairer port.

Some PKCS#12 files (typically exported with AES/PBES2 protection) cannot be
read by the signing primitive. The repair re-encodes them with a legacy
cipher, keeping the same key material and password, by chaining two
`openssl pkcs12` processes:

  A: openssl pkcs12 -in <input> -nodes -legacy      (decode to PEM on stdout)
       │ PEM kept in memory, written to two pipes
  B: openssl pkcs12 -export -out <output> -in /dev/fd/N -inkey /dev/fd/M
                    -keypbe PBE-SHA1-3DES -certpbe PBE-SHA1-3DES

B reads the certificates and the key as two separate inputs, and a pipe
can only be read once, so the PEM goes down one pipe for each. The
unencrypted key never touches the filesystem.

The password reaches both processes through an environment variable
(`-passin env:` / `-passout env:`), never as a command-line literal.
Input and output live in uniquely named temp files that are removed on
every exit path.
"""

from __future__ import annotations

import os
import secrets
import subprocess
import tempfile
import threading
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import structlog
from railway.result import Result

from sri_submitter.domain.errors import KeystoreRepairFailed

log = structlog.get_logger()

PASSWORD_ENV_VAR = "SRI_SUBMITTER_KEYSTORE_PASSWORD"
DEFAULT_LEGACY_CIPHER = "PBE-SHA1-3DES"
DEFAULT_DECODE_FLAGS: tuple[str, ...] = ("-legacy",)


def _unique_name(kind: str) -> str:
    """Collision-resistant under concurrency: monotonic clock + random token."""
    return f"keystore_{kind}_{time.monotonic_ns()}_{secrets.token_hex(8)}.p12"


def _feed(fd: int, data: bytes) -> None:
    """Write data to a pipe and close it."""
    try:
        with open(fd, "wb") as pipe:
            pipe.write(data)
    except BrokenPipeError:
        # The reader exited early; its exit status reports why.
        pass


class OpensslKeystoreRepairer:
    """
    Re-encode a keystore with the external `openssl` toolchain.

    Implements the KeystoreRepairer port.
    """

    def __init__(
        self,
        openssl_path: str = "openssl",
        temp_dir: Path | None = None,
        timeout: float = 30,
        legacy_cipher: str = DEFAULT_LEGACY_CIPHER,
        decode_flags: Sequence[str] = DEFAULT_DECODE_FLAGS,
    ) -> None:
        self._openssl_path = openssl_path
        self._temp_dir = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())
        self._timeout = timeout
        self._legacy_cipher = legacy_cipher
        self._decode_flags = tuple(decode_flags)

    def repair(self, keystore: bytes, password: str) -> Result[bytes]:
        """
        Return Result[bytes] with a NEW keystore protected by the legacy cipher,
        or Result.failure(KeystoreRepairFailed) with the toolchain stderr attached.
        """
        log.info("keystore.repair_started", size_bytes=len(keystore))
        try:
            repaired = self._run_toolchain(keystore, password)
        except KeystoreRepairFailed as e:
            log.warning("keystore.repair_failed", error=str(e))
            log.debug("keystore.repair_stderr", stderr=e.stderr)
            return e.to_result()
        except OSError as e:
            log.warning("keystore.repair_failed", error=str(e))
            return KeystoreRepairFailed(f"Keystore repair toolchain could not run: {e}").to_result()
        log.info("keystore.repaired", size_bytes=len(repaired))
        return Result.success(repaired)

    @contextmanager
    def _scoped_paths(self) -> Iterator[tuple[Path, Path]]:
        """Yield (input, output) temp paths and delete both whatever happens."""
        input_path = self._temp_dir / _unique_name("in")
        output_path = self._temp_dir / _unique_name("out")
        try:
            yield input_path, output_path
        finally:
            input_path.unlink(missing_ok=True)
            output_path.unlink(missing_ok=True)

    def _decode_command(self, input_path: Path) -> list[str]:
        return [
            self._openssl_path, "pkcs12",
            "-in", str(input_path),
            "-nodes",
            "-passin", f"env:{PASSWORD_ENV_VAR}",
            *self._decode_flags,
        ]

    def _encode_command(self, output_path: Path, certs_fd: int, key_fd: int) -> list[str]:
        return [
            self._openssl_path, "pkcs12", "-export",
            "-out", str(output_path),
            "-in", f"/dev/fd/{certs_fd}",
            "-inkey", f"/dev/fd/{key_fd}",
            "-passout", f"env:{PASSWORD_ENV_VAR}",
            "-keypbe", self._legacy_cipher,
            "-certpbe", self._legacy_cipher,
            "-macalg", "sha1",
        ]

    def _timed_out(self) -> KeystoreRepairFailed:
        return KeystoreRepairFailed(f"Keystore repair toolchain timed out after {self._timeout}s")

    def _run_toolchain(self, keystore: bytes, password: str) -> bytes:
        env = {**os.environ, PASSWORD_ENV_VAR: password}
        with self._scoped_paths() as (input_path, output_path):
            fd = os.open(input_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
            with os.fdopen(fd, "wb") as handle:
                handle.write(keystore)

            try:
                decoded = subprocess.run(
                    self._decode_command(input_path),
                    capture_output=True,
                    env=env,
                    timeout=self._timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired:
                raise self._timed_out() from None
            if decoded.returncode != 0:
                raise KeystoreRepairFailed(
                    f"Keystore repair toolchain failed (decode exit {decoded.returncode})",
                    stderr=decoded.stderr.decode("utf-8", errors="replace").strip(),
                )

            encode_err, returncode = self._encode(decoded.stdout, output_path, env)
            if returncode != 0:
                raise KeystoreRepairFailed(
                    f"Keystore repair toolchain failed (encode exit {returncode})",
                    stderr=encode_err.decode("utf-8", errors="replace").strip(),
                )
            repaired = output_path.read_bytes() if output_path.exists() else b""
            if not repaired:
                raise KeystoreRepairFailed(
                    "Keystore repair toolchain produced no output",
                    stderr=encode_err.decode("utf-8", errors="replace").strip(),
                )
            return repaired

    def _encode(self, pem: bytes, output_path: Path, env: dict[str, str]) -> tuple[bytes, int]:
        """Run operation B with the PEM on two pipes; return (stderr, exit code)."""
        certs_read, certs_write = os.pipe()
        key_read, key_write = os.pipe()
        try:
            encoder = subprocess.Popen(
                self._encode_command(output_path, certs_read, key_read),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                pass_fds=(certs_read, key_read),
            )
        except OSError:
            for fd in (certs_write, key_write):
                os.close(fd)
            raise
        finally:
            os.close(certs_read)
            os.close(key_read)

        feeders = [
            threading.Thread(target=_feed, args=(certs_write, pem), daemon=True),
            threading.Thread(target=_feed, args=(key_write, pem), daemon=True),
        ]
        for feeder in feeders:
            feeder.start()
        with encoder:
            try:
                _, encode_err = encoder.communicate(timeout=self._timeout)
            except subprocess.TimeoutExpired:
                encoder.kill()
                encoder.communicate()
                raise self._timed_out() from None
            finally:
                for feeder in feeders:
                    feeder.join(timeout=self._timeout)
        return encode_err, encoder.returncode
