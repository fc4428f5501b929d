"""
Application entry point — composition root and authorization-check command.

This is the ONLY place where concrete adapters are instantiated. The XML
signing primitive and the document builder are supplied by the embedding
application; everything else is built from AppSettings.

Responsibilities:
  1. Configure structlog for structured logging
  2. Load and validate configuration from environment
  3. Create concrete adapters (SOAP client, OpenSSL repairer)
  4. Wire AdaptiveSigner, SubmissionStateMachine and SubmissionService
  5. `sri-submitter <access-key>`: check (and optionally wait for) an authorization
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

import structlog

from sri_submitter import __version__
from sri_submitter.adapters.openssl_repairer import OpensslKeystoreRepairer
from sri_submitter.adapters.soap_client import HttpSubmissionClient
from sri_submitter.config import AppSettings
from sri_submitter.domain.ports import DocumentBuilder, XmlSigner
from sri_submitter.pipeline import SubmissionStateMachine
from sri_submitter.polling import poll_authorization
from sri_submitter.responses import check_to_payload
from sri_submitter.service import AuthorizationChecker, SubmissionService
from sri_submitter.signing import AdaptiveSigner


def configure_structlog(log_level: str = "INFO") -> None:
    """Configure structlog: contextvars, level, ISO timestamps, console output."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def create_client(settings: AppSettings) -> HttpSubmissionClient:
    return HttpSubmissionClient(
        endpoints=settings.endpoint_table(),
        timeout=settings.http_timeout_seconds,
    )


def create_repairer(settings: AppSettings) -> OpensslKeystoreRepairer:
    return OpensslKeystoreRepairer(
        openssl_path=settings.toolchain.openssl_path,
        temp_dir=settings.toolchain.temp_dir,
        timeout=settings.toolchain.timeout_seconds,
        legacy_cipher=settings.toolchain.legacy_cipher,
        decode_flags=settings.toolchain.decode_flags,
    )


def create_service(
    settings: AppSettings,
    signer: XmlSigner,
    builder: DocumentBuilder,
) -> SubmissionService:
    """Wire the full submission service around the given signer and builder."""
    client = create_client(settings)
    machine = SubmissionStateMachine(
        signer=AdaptiveSigner(signer=signer, repairer=create_repairer(settings)),
        client=client,
        poll_delay=settings.poll_delay_seconds,
    )
    return SubmissionService(builder=builder, machine=machine, checker=AuthorizationChecker(client))


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sri-submitter",
        description="Check the authorization status of a submitted document by access key.",
    )
    parser.add_argument("access_key", help="49-digit access key")
    parser.add_argument(
        "--wait",
        action="store_true",
        help="keep polling while the document is still being processed",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Print the authorization status of one access key as JSON."""
    args = _parse_args(argv)
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return 2

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.info("app.starting", version=__version__, log_level=settings.log_level, wait=args.wait)

    checker = AuthorizationChecker(create_client(settings))

    if args.wait:
        result = poll_authorization(
            lambda: checker.check(args.access_key),
            attempts=settings.authorization_poll_attempts,
            interval=settings.authorization_poll_interval_seconds,
        )
    else:
        result = checker.check(args.access_key)

    body, status = check_to_payload(result)
    print(json.dumps(body, ensure_ascii=False, indent=2))  # noqa: T201
    return 0 if status == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
