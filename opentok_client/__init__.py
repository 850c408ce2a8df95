"""OpenTok session and token client package."""

from .client import OpenTok, UsageError
from .config import (
    ClientConfig,
    ConfigurationError,
    Credentials,
    TransportOptions,
    load_client_config,
)
from .session import Session
from .session_api import (
    AuthenticationError,
    ServiceError,
    SessionAPIError,
    TransportError,
    build_session_request,
    parse_session_response,
)
from .session_id import DecodedSessionId, DecodeError, decode_session_id, encode_session_id
from .tokens import TokenDecodeError, decode_token, generate_token, verify_token_signature
from .validators import (
    ARCHIVE_MODE_ALWAYS,
    ARCHIVE_MODE_MANUAL,
    MEDIA_MODE_RELAYED,
    MEDIA_MODE_ROUTED,
    ROLE_MODERATOR,
    ROLE_PUBLISHER,
    ROLE_SUBSCRIBER,
    ValidationError,
)
from .version import __version__

__all__ = [
    "OpenTok",
    "UsageError",
    "ClientConfig",
    "ConfigurationError",
    "Credentials",
    "TransportOptions",
    "load_client_config",
    "Session",
    "AuthenticationError",
    "ServiceError",
    "SessionAPIError",
    "TransportError",
    "build_session_request",
    "parse_session_response",
    "DecodedSessionId",
    "DecodeError",
    "decode_session_id",
    "encode_session_id",
    "TokenDecodeError",
    "decode_token",
    "generate_token",
    "verify_token_signature",
    "ARCHIVE_MODE_ALWAYS",
    "ARCHIVE_MODE_MANUAL",
    "MEDIA_MODE_RELAYED",
    "MEDIA_MODE_ROUTED",
    "ROLE_MODERATOR",
    "ROLE_PUBLISHER",
    "ROLE_SUBSCRIBER",
    "ValidationError",
    "__version__",
]
