"""Verify that the gateway's environment configuration is intact.

The tool performs two checks:

1. It loads ``AppSettings`` from the given ``.env`` file, so a missing
   ``COLIS_PRIVE_SOCIETE``/``COLIS_PRIVE_PASSWORD`` or a malformed value is
   reported before the service starts answering 401s.
2. It can record and verify a checksum for the ``.env`` file so unexpected
   edits are detected.

Example usages::

    python -m scripts.check_env record --env-file /opt/routing/.env \
        --hash-file /opt/routing/.env.sha256

    python -m scripts.check_env verify --env-file /opt/routing/.env \
        --hash-file /opt/routing/.env.sha256

    python -m scripts.check_env check --env-file /opt/routing/.env
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from app.core.config import AppSettings, _load_env_file

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    """Return the SHA256 checksum for the target environment file."""
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Load settings with ``env_file`` as the source of unset variables."""
    _load_env_file(str(env_file))
    return AppSettings(_env_file=str(env_file))  # type: ignore[call-arg]


def _describe(settings: AppSettings) -> str:
    """Summarize the effective settings without printing secrets."""
    courier = settings.courier
    cache = settings.session_cache
    lines = [
        f"environment:        {settings.environment}",
        f"default societe:    {courier.default_societe}",
        f"auth url:           {courier.auth_url}",
        f"tournee url:        {courier.tournee_url}",
        f"request timeout:    {courier.request_timeout_seconds:.0f}s",
        f"token ttl:          {cache.ttl_hours}h",
        f"refresh margin:     {cache.refresh_margin_seconds}s",
        f"sweep interval:     {cache.sweep_interval_seconds}s",
    ]
    return "\n".join(lines)


def _print_summary(settings: AppSettings) -> int:
    print(_describe(settings))
    return EXIT_OK


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    """Persist the current checksum to ``hash_file``."""
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
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
        "Investigate recent changes before restarting the gateway.",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate gateway settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_env_file(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    def add_hash_file(subparser: argparse.ArgumentParser, verb: str) -> None:
        subparser.add_argument(
            "--hash-file",
            required=True,
            type=Path,
            help=f"Location to {verb} the checksum baseline.",
        )

    record_parser = subparsers.add_parser(
        "record", help="Validate settings and store the checksum baseline."
    )
    add_env_file(record_parser)
    add_hash_file(record_parser, "write")

    verify_parser = subparsers.add_parser(
        "verify", help="Validate settings and compare against the baseline."
    )
    add_env_file(verify_parser)
    add_hash_file(verify_parser, "read")

    check_parser = subparsers.add_parser(
        "check", help="Validate settings and print a summary."
    )
    add_env_file(check_parser)

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
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
        "check": lambda: _print_summary(settings),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
