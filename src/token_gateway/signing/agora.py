"""Agora signer — wraps the RTC/RTM token builders from ``agora-token-builder``."""

from __future__ import annotations

from agora_token_builder import RtcTokenBuilder, RtmTokenBuilder

from token_gateway.config import AppCredentials
from token_gateway.signing.base import IdentityMode


class AgoraSigner:
    """Credential signer backed by Agora's AccessToken builders.

    The builders mix a random salt and the current time into every
    token, so two calls with identical inputs return different strings
    that grant identical privileges.
    """

    def sign_media(
        self,
        credentials: AppCredentials,
        channel_name: str,
        subject_id: str,
        role: int,
        identity_mode: IdentityMode,
        privilege_expire_at: int,
    ) -> str:
        if identity_mode is IdentityMode.BY_ACCOUNT:
            build = RtcTokenBuilder.buildTokenWithAccount
        else:
            build = RtcTokenBuilder.buildTokenWithUid
        return build(
            credentials.app_id,
            credentials.app_certificate,
            channel_name,
            subject_id,
            int(role),
            privilege_expire_at,
        )

    def sign_messaging(
        self,
        credentials: AppCredentials,
        subject_id: str,
        role: int,
        privilege_expire_at: int,
    ) -> str:
        return RtmTokenBuilder.buildToken(
            credentials.app_id,
            credentials.app_certificate,
            subject_id,
            int(role),
            privilege_expire_at,
        )
