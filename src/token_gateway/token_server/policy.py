"""Issuance policies: which signer calls a validated request turns into.

Three variants share one ``TokenRequest`` type and keep the endpoint
asymmetries in one place:

- media signs one RTC token using the requested identity mode;
- messaging signs one RTM token with the fixed messaging role and
  ignores channel, role and identity mode;
- combined signs both with one expiry instant, always by numeric id,
  and reuses the *media* role as the messaging role.
"""

from __future__ import annotations

import time
from typing import Callable

from pydantic import BaseModel

from token_gateway.config import AppCredentials
from token_gateway.signing.base import CredentialSigner, IdentityMode, MessagingRole
from token_gateway.token_server.normalizer import (
    MAX_EXPIRE_AT,
    TokenRequest,
    TokenValidationError,
)
from token_gateway.token_server.schemas import (
    RtcTokenResponse,
    RteTokenResponse,
    RtmTokenResponse,
)

Clock = Callable[[], int]


def unix_now() -> int:
    """Current wall-clock time in whole Unix seconds."""
    return int(time.time())


def privilege_expire_at(request: TokenRequest, now: int) -> int:
    """Absolute Unix timestamp at which the request's privileges lapse.

    Raises ``TokenValidationError`` when the instant falls outside the
    unsigned 32-bit range the token format can carry.
    """
    expire_at = now + request.ttl_seconds
    if not 0 <= expire_at <= MAX_EXPIRE_AT:
        raise TokenValidationError(TokenValidationError.EXPIRY_INVALID)
    return expire_at


class IssuancePolicy:
    """Base for the three policies; holds the shared collaborators."""

    def __init__(
        self,
        credentials: AppCredentials,
        signer: CredentialSigner,
        clock: Clock = unix_now,
    ) -> None:
        self._credentials = credentials
        self._signer = signer
        self._clock = clock

    def issue(self, request: TokenRequest) -> BaseModel:
        """Sign the token(s) for a validated request and build the response body."""
        raise NotImplementedError

    def expire_at(self, request: TokenRequest) -> int:
        return privilege_expire_at(request, self._clock())

    def _sign_media(
        self, request: TokenRequest, identity_mode: IdentityMode, expire_at: int
    ) -> str:
        assert request.channel_name is not None and request.role is not None
        return self._signer.sign_media(
            self._credentials,
            request.channel_name,
            request.subject_id,
            request.role,
            identity_mode,
            expire_at,
        )


class MediaIssuancePolicy(IssuancePolicy):
    """One RTC token, signer entry point picked by the identity mode."""

    def issue(self, request: TokenRequest) -> RtcTokenResponse:
        assert request.identity_mode is not None
        token = self._sign_media(request, request.identity_mode, self.expire_at(request))
        return RtcTokenResponse(rtc_token=token)


class MessagingIssuancePolicy(IssuancePolicy):
    """One RTM token with the fixed messaging role."""

    role = MessagingRole.RTM_USER

    def issue(self, request: TokenRequest) -> RtmTokenResponse:
        token = self._signer.sign_messaging(
            self._credentials,
            request.subject_id,
            self.role,
            self.expire_at(request),
        )
        return RtmTokenResponse(rtm_token=token)


class CombinedIssuancePolicy(IssuancePolicy):
    """RTC and RTM tokens that expire in lockstep."""

    def issue(self, request: TokenRequest) -> RteTokenResponse:
        assert request.role is not None
        expire_at = self.expire_at(request)
        rtc_token = self._sign_media(request, IdentityMode.BY_NUMERIC_ID, expire_at)
        rtm_token = self._signer.sign_messaging(
            self._credentials,
            request.subject_id,
            request.role,
            expire_at,
        )
        return RteTokenResponse(rtc_token=rtc_token, rtm_token=rtm_token)
