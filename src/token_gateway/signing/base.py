"""Signer protocol — defines the interface for credential signing backends."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Protocol, runtime_checkable

from token_gateway.config import AppCredentials


class MediaRole(IntEnum):
    """Privilege role carried by a media (RTC) token."""

    PUBLISHER = 1
    SUBSCRIBER = 2


class MessagingRole(IntEnum):
    """Privilege role carried by a messaging (RTM) token."""

    RTM_USER = 1


class IdentityMode(Enum):
    """How the subject of a media token is identified."""

    BY_ACCOUNT = "userAccount"
    BY_NUMERIC_ID = "uid"


@runtime_checkable
class CredentialSigner(Protocol):
    """Protocol for credential signers.

    Implementations are deterministic functions of their inputs apart
    from whatever salt the underlying token format mixes in, and must
    not hold per-request state.
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
        """Return a signed media token for ``subject_id`` in ``channel_name``.

        Args:
            credentials: Application identity and secret.
            channel_name: Channel the token grants access to.
            subject_id: Account string or numeric id, per ``identity_mode``.
            role: Privilege role value.
            identity_mode: Selects the account-based or numeric-id entry point.
            privilege_expire_at: Absolute Unix timestamp the privileges lapse at.
        """
        ...

    def sign_messaging(
        self,
        credentials: AppCredentials,
        subject_id: str,
        role: int,
        privilege_expire_at: int,
    ) -> str:
        """Return a signed messaging token for ``subject_id``."""
        ...
