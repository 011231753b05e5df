"""Verify that the notification service's environment configuration is usable.

Checks performed:

1. ``AppSettings`` loads from the supplied ``.env`` file, so missing or
   malformed entries surface before the webhook starts failing.
2. The Firebase service account parses into a credential and its private key
   can sign an assertion. No request is sent to Google.
3. Optionally, a SHA256 checksum of the ``.env`` file is recorded or verified
   to detect unexpected edits.

Example usages::

    # Validate settings and record the expected checksum.
    python -m scripts.check_env record --env-file /srv/media-push/.env \
        --hash-file /srv/media-push/.env.sha256

    # Run later (e.g. from cron) to alert on drift.
    python -m scripts.check_env verify --env-file /srv/media-push/.env \
        --hash-file /srv/media-push/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.clients.google_auth import AssertionSigner
from app.core.config import AppSettings, _load_env_file
from app.core.errors import CredentialError
from app.models.credentials import ServiceCredential

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_CREDENTIAL_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _check_credential(settings: AppSettings) -> ServiceCredential:
    """Parse the service account and sign a throwaway assertion with it."""
    try:
        info = settings.firebase.load_service_account_info()
    except (OSError, ValueError) as exc:
        raise CredentialError(f"Unable to read service account: {exc}") from exc
    credential = ServiceCredential.from_service_account_info(
        info, audience=settings.oauth.token_uri, scope=settings.oauth.scope
    )
    signer = AssertionSigner(settings.oauth.assertion_lifetime_seconds)
    signer.sign(signer.build_claims(credential), credential)
    return credential


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"Expected checksum file {hash_file} is missing. "
            "Re-run with the 'record' command to establish a baseline.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}\n"
        "Investigate recent changes before restarting the service.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate notification settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    for name, help_text in (
        ("record", "Validate settings and store the checksum baseline."),
        ("verify", "Validate settings and compare the checksum with the baseline."),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        add_common_arguments(subparser)
        subparser.add_argument(
            "--hash-file",
            required=True,
            type=Path,
            help="Location of the checksum baseline.",
        )

    check_parser = subparsers.add_parser(
        "check",
        help="Validate settings and credentials without touching checksum files.",
    )
    add_common_arguments(check_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
        credential = _check_credential(settings)
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except CredentialError as exc:
        print(f"Service account credential is unusable: {exc}", file=sys.stderr)
        return EXIT_CREDENTIAL_ERROR

    print(f"Service account {credential.client_email} can sign assertions.")

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: EXIT_OK,
    }
    return handlers[command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
