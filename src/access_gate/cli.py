"""Command-line entry point (``access-gate``).

Sub-commands
------------
``serve``
    Load a TOML configuration, build the gate and serve it over HTTP.
``issue-token``
    Print a signed JWT accepted by the ``jwt`` verifier.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import jwt

from access_gate.bootstrap import build_gate
from access_gate.core.config import GateSettings, load_settings, parse_settings
from access_gate.core.errors import ConfigurationError
from access_gate.identity.jwt import DEFAULT_TTL_SECONDS, SUPPORTED_ALGORITHMS, issue_token

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="access-gate",
        description="Token access gate with an audited decision history.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the gate HTTP service")
    serve.add_argument("--config", "-c", help="path to the TOML configuration file")
    serve.add_argument("--port", type=int, help="override the configured port")
    serve.add_argument("--mount-point", help="override the configured mount point")

    token = sub.add_parser("issue-token", help="print a signed JWT for the jwt verifier")
    token.add_argument("--key", required=True, help="HMAC secret or PEM private key")
    token.add_argument("--subject", required=True, help="identity name (sub claim)")
    token.add_argument("--ttl", type=int, default=DEFAULT_TTL_SECONDS, help="lifetime in seconds")
    token.add_argument("--algorithm", default="HS256", choices=SUPPORTED_ALGORITHMS)
    token.add_argument("--audience")
    token.add_argument("--issuer")
    return parser


def resolve_settings(args: argparse.Namespace) -> GateSettings:
    """Load settings from ``--config`` and apply command-line overrides."""
    settings = load_settings(args.config) if args.config else GateSettings()
    overrides: dict[str, object] = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.mount_point is not None:
        overrides["mount_point"] = args.mount_point
    if overrides:
        # Re-validate so overrides obey the same rules as the file.
        settings = parse_settings({**settings.model_dump(), **overrides})
    return settings


def _serve(args: argparse.Namespace) -> int:
    # Imported lazily so issue-token does not pay for FastAPI/uvicorn.
    from access_gate.wire.server import run

    settings = resolve_settings(args)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    gate = build_gate(settings)
    run(settings, gate)
    return 0


def _issue_token(args: argparse.Namespace) -> int:
    try:
        token = issue_token(
            args.key,
            args.subject,
            ttl=args.ttl,
            algorithm=args.algorithm,
            audience=args.audience,
            issuer=args.issuer,
        )
    except (ValueError, jwt.PyJWTError) as exc:
        print(f"access-gate: cannot sign token: {exc}", file=sys.stderr)
        return 2
    print(token)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "serve":
            return _serve(args)
        return _issue_token(args)
    except ConfigurationError as exc:
        print(f"access-gate: {exc.message}", file=sys.stderr)
        for problem in exc.details.get("errors", []):
            location = ".".join(str(part) for part in problem.get("loc", ()))
            print(f"  {location}: {problem.get('msg', '')}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
