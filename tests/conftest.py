"""Shared fixtures for token gateway tests."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from token_gateway.config import AppCredentials, Settings
from token_gateway.signing.base import IdentityMode
from token_gateway.token_server.main import create_app

FIXED_NOW = 1_700_000_000


@dataclass
class RecordingSigner:
    """Signer stub that records every call and returns readable tokens."""

    media_calls: list[dict] = field(default_factory=list)
    messaging_calls: list[dict] = field(default_factory=list)

    def sign_media(
        self,
        credentials: AppCredentials,
        channel_name: str,
        subject_id: str,
        role: int,
        identity_mode: IdentityMode,
        privilege_expire_at: int,
    ) -> str:
        self.media_calls.append(
            {
                "credentials": credentials,
                "channel_name": channel_name,
                "subject_id": subject_id,
                "role": int(role),
                "identity_mode": identity_mode,
                "privilege_expire_at": privilege_expire_at,
            }
        )
        return f"rtc:{channel_name}:{subject_id}:{int(role)}:{privilege_expire_at}"

    def sign_messaging(
        self,
        credentials: AppCredentials,
        subject_id: str,
        role: int,
        privilege_expire_at: int,
    ) -> str:
        self.messaging_calls.append(
            {
                "credentials": credentials,
                "subject_id": subject_id,
                "role": int(role),
                "privilege_expire_at": privilege_expire_at,
            }
        )
        return f"rtm:{subject_id}:{int(role)}:{privilege_expire_at}"


@pytest.fixture
def settings():
    """Create test settings."""
    return Settings(
        _env_file=None,
        app_id="test-app-id",
        app_certificate="test-app-certificate",
        port=3000,
    )


@pytest.fixture
def signer():
    return RecordingSigner()


@pytest.fixture
def client(settings: Settings, signer: RecordingSigner):
    """Test client over a fake signer and a frozen clock."""
    app = create_app(settings, signer=signer, clock=lambda: FIXED_NOW)
    return TestClient(app)
