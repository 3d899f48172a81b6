"""Request normalization: raw path/query strings to a validated TokenRequest."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from token_gateway.signing.base import IdentityMode, MediaRole

DEFAULT_EXPIRY_SECONDS = 3600
# Privilege timestamps are packed as uint32.
MAX_EXPIRE_AT = 2**32 - 1

_ROLES = {
    "publisher": MediaRole.PUBLISHER,
    "audience": MediaRole.SUBSCRIBER,
}
_IDENTITY_MODES = {mode.value: mode for mode in IdentityMode}
_INTEGER = re.compile(r"[+-]?0*[0-9]{1,10}")


class EndpointFamily(Enum):
    """Which token(s) a request asks for; selects the checks that apply."""

    MEDIA = "rtc"
    MESSAGING = "rtm"
    COMBINED = "rte"


class TokenValidationError(ValueError):
    """Caller-correctable problem with a token request."""

    CHANNEL_REQUIRED = "channel is required"
    UID_REQUIRED = "uid is required"
    ROLE_INCORRECT = "role is incorrect"
    TOKEN_TYPE_INVALID = "token type is invalid"
    EXPIRY_INVALID = "expiry is invalid"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class TokenRequest:
    """A validated token request.  Lives for one HTTP request."""

    subject_id: str
    channel_name: str | None = None
    role: MediaRole | None = None
    identity_mode: IdentityMode | None = None
    ttl_seconds: int = DEFAULT_EXPIRY_SECONDS


def parse_role(raw: str | None) -> MediaRole:
    try:
        return _ROLES[raw or ""]
    except KeyError:
        raise TokenValidationError(TokenValidationError.ROLE_INCORRECT) from None


def parse_identity_mode(raw: str | None) -> IdentityMode:
    try:
        return _IDENTITY_MODES[raw or ""]
    except KeyError:
        raise TokenValidationError(TokenValidationError.TOKEN_TYPE_INVALID) from None


def parse_expiry(raw: str | None, default: int = DEFAULT_EXPIRY_SECONDS) -> int:
    """Parse the ``expiry`` query value as base-10 seconds.

    Absent or empty means ``default``.  Anything that is not a plain
    integer, or whose magnitude could never give a uint32 timestamp, is
    rejected rather than turned into a bogus one.
    """
    if not raw:
        return default
    if not _INTEGER.fullmatch(raw):
        raise TokenValidationError(TokenValidationError.EXPIRY_INVALID)
    seconds = int(raw, 10)
    if abs(seconds) > MAX_EXPIRE_AT:
        raise TokenValidationError(TokenValidationError.EXPIRY_INVALID)
    return seconds


def normalize(
    family: EndpointFamily,
    *,
    subject: str | None,
    channel: str | None = None,
    role: str | None = None,
    token_type: str | None = None,
    expiry: str | None = None,
    default_expiry: int = DEFAULT_EXPIRY_SECONDS,
) -> TokenRequest:
    """Validate raw parameters for ``family``; the first failing check wins.

    Order: channel, uid, role, token type, expiry.  Messaging requests
    skip channel and role; only media requests look at the token type,
    combined requests are always signed by numeric id.

    Raises:
        TokenValidationError: with one of the fixed messages.
    """
    wants_channel = family is not EndpointFamily.MESSAGING

    if wants_channel and not channel:
        raise TokenValidationError(TokenValidationError.CHANNEL_REQUIRED)
    if not subject:
        raise TokenValidationError(TokenValidationError.UID_REQUIRED)

    media_role = parse_role(role) if wants_channel else None

    if family is EndpointFamily.MEDIA:
        identity_mode: IdentityMode | None = parse_identity_mode(token_type)
    elif family is EndpointFamily.COMBINED:
        identity_mode = IdentityMode.BY_NUMERIC_ID
    else:
        identity_mode = None

    return TokenRequest(
        subject_id=subject,
        channel_name=channel if wants_channel else None,
        role=media_role,
        identity_mode=identity_mode,
        ttl_seconds=parse_expiry(expiry, default_expiry),
    )
