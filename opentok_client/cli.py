"""Command-line interface for creating OpenTok sessions and tokens.

Credentials come from ``OPENTOK_API_KEY``/``OPENTOK_API_SECRET`` or the YAML
file given with ``--config`` (``~/.opentok.yaml`` by default).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Sequence

from .client import OpenTok, UsageError
from .config import ConfigurationError, load_client_config
from .session import Session
from .session_api import SessionAPIError
from .session_id import DecodeError, decode_session_id
from .tokens import TokenDecodeError, decode_token, verify_token_signature
from .validators import ARCHIVE_MODES, MEDIA_MODES, ROLES
from .version import __version__

logger = logging.getLogger(__name__)

COMPACT_JSON_SEPARATORS = (",", ":")


class CLIError(RuntimeError):
    """Raised when CLI arguments are invalid or a command cannot complete."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OpenTok session and token CLI")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file with an 'opentok' section (default: ~/.opentok.yaml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_parser = subparsers.add_parser("create-session", help="create a new session")
    create_parser.add_argument(
        "--media-mode",
        choices=MEDIA_MODES,
        default=None,
        help="relayed (peer-to-peer, default) or routed through the media server",
    )
    create_parser.add_argument("--location", default=None, help="IPv4 location hint")
    create_parser.add_argument(
        "--archive-mode",
        choices=ARCHIVE_MODES,
        default=None,
        help="Archive mode for the session (always requires --media-mode routed)",
    )

    token_parser = subparsers.add_parser("generate-token", help="mint a token for a session")
    token_parser.add_argument("session_id", help="Session id returned by create-session")
    token_parser.add_argument("--role", choices=ROLES, default=None, help="Token role")
    token_parser.add_argument(
        "--expire-time",
        type=int,
        default=None,
        help="Expiry as unix seconds (default: one day from now)",
    )
    token_parser.add_argument("--data", default=None, help="Connection data (max 1000 bytes)")

    decode_token_parser = subparsers.add_parser(
        "decode-token", help="print the fields embedded in a token"
    )
    decode_token_parser.add_argument("token", help="Token string starting with T1==")
    decode_token_parser.add_argument(
        "--secret",
        default=None,
        help="API secret used to check the token signature",
    )

    decode_session_parser = subparsers.add_parser(
        "decode-session-id", help="print the fields embedded in a session id"
    )
    decode_session_parser.add_argument("session_id", help="Session id to decode")
    return parser


def _client_from_args(args: argparse.Namespace) -> OpenTok:
    return OpenTok.from_config(load_client_config(config_path=args.config))


def _print_json(data: dict[str, Any]) -> None:
    print(json.dumps(data, separators=COMPACT_JSON_SEPARATORS))


def cmd_create_session(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    options = {
        "media_mode": args.media_mode,
        "location": args.location,
        "archive_mode": args.archive_mode,
    }
    options = {key: value for key, value in options.items() if value is not None}

    def emit(error: Exception | None, session: Session | None) -> None:
        if error is not None:
            raise CLIError(str(error)) from error
        assert session is not None
        _print_json(
            {
                "session_id": session.session_id,
                "media_mode": session.media_mode,
                "location": session.location,
                "archive_mode": session.archive_mode,
            }
        )

    client.create_session(options, emit)


def cmd_generate_token(args: argparse.Namespace) -> None:
    client = _client_from_args(args)
    token = client.generate_token(
        args.session_id,
        role=args.role,
        expire_time=args.expire_time,
        data=args.data,
    )
    if not token:
        raise CLIError(
            "Could not generate a token; check that the session id belongs to this API key "
            "and that --data is at most 1000 bytes"
        )
    print(token)


def cmd_decode_token(args: argparse.Namespace) -> None:
    fields: dict[str, Any] = dict(decode_token(args.token))
    if args.secret is not None:
        fields["signature_valid"] = verify_token_signature(args.token, args.secret)
    _print_json(fields)


def cmd_decode_session_id(args: argparse.Namespace) -> None:
    decoded = decode_session_id(args.session_id)
    if isinstance(decoded, DecodeError):
        raise CLIError(str(decoded))
    _print_json(asdict(decoded))


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    try:
        if args.command == "create-session":
            cmd_create_session(args)
        elif args.command == "generate-token":
            cmd_generate_token(args)
        elif args.command == "decode-token":
            cmd_decode_token(args)
        elif args.command == "decode-session-id":
            cmd_decode_session_id(args)
        else:  # pragma: no cover - argparse enforces choices
            raise CLIError(f"Unknown command: {args.command}")
    except KeyboardInterrupt:  # pragma: no cover - interactive use
        logger.info("Interrupted by user")
    except (
        CLIError,
        ConfigurationError,
        SessionAPIError,
        TokenDecodeError,
        UsageError,
    ) as exc:
        parser.exit(1, f"error: {exc}\n")


if __name__ == "__main__":
    main(sys.argv[1:])
