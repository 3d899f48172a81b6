"""Tests for the issuance policies."""

import pytest

from token_gateway.config import AppCredentials
from token_gateway.signing.base import IdentityMode, MediaRole, MessagingRole
from token_gateway.token_server.normalizer import TokenRequest, TokenValidationError
from token_gateway.token_server.policy import (
    CombinedIssuancePolicy,
    IssuancePolicy,
    MediaIssuancePolicy,
    MessagingIssuancePolicy,
    privilege_expire_at,
)

CREDENTIALS = AppCredentials(app_id="app", app_certificate="secret")
FIXED_NOW = 1_700_000_000


def _policy(cls, signer, now=FIXED_NOW):
    return cls(CREDENTIALS, signer, clock=lambda: now)


def _request(**overrides):
    fields = dict(
        subject_id="42",
        channel_name="demo-channel",
        role=MediaRole.PUBLISHER,
        identity_mode=IdentityMode.BY_NUMERIC_ID,
        ttl_seconds=60,
    )
    fields.update(overrides)
    return TokenRequest(**fields)


def test_privilege_expire_at_adds_ttl():
    assert privilege_expire_at(_request(ttl_seconds=90), now=1000) == 1090


def test_privilege_expire_at_bounds():
    assert privilege_expire_at(_request(ttl_seconds=-1000), now=1000) == 0
    assert privilege_expire_at(_request(ttl_seconds=0), now=2**32 - 1) == 2**32 - 1


@pytest.mark.parametrize("ttl", [4_000_000_000, -2_000_000_000])
def test_expire_at_outside_uint32_signs_nothing(signer, ttl):
    for cls in (MediaIssuancePolicy, MessagingIssuancePolicy, CombinedIssuancePolicy):
        with pytest.raises(TokenValidationError, match="expiry is invalid"):
            _policy(cls, signer).issue(_request(ttl_seconds=ttl))
    assert signer.media_calls == []
    assert signer.messaging_calls == []


def test_base_policy_does_not_issue(signer):
    with pytest.raises(NotImplementedError):
        _policy(IssuancePolicy, signer).issue(_request())


class TestMediaPolicy:
    """Single RTC token."""

    def test_numeric_id(self, signer):
        body = _policy(MediaIssuancePolicy, signer).issue(_request())

        assert body.rtc_token == f"rtc:demo-channel:42:1:{FIXED_NOW + 60}"
        assert signer.media_calls == [
            {
                "credentials": CREDENTIALS,
                "channel_name": "demo-channel",
                "subject_id": "42",
                "role": 1,
                "identity_mode": IdentityMode.BY_NUMERIC_ID,
                "privilege_expire_at": FIXED_NOW + 60,
            }
        ]
        assert signer.messaging_calls == []

    def test_account_mode_is_forwarded(self, signer):
        _policy(MediaIssuancePolicy, signer).issue(
            _request(subject_id="alice", identity_mode=IdentityMode.BY_ACCOUNT)
        )
        assert signer.media_calls[0]["identity_mode"] is IdentityMode.BY_ACCOUNT

    def test_subscriber_role(self, signer):
        _policy(MediaIssuancePolicy, signer).issue(_request(role=MediaRole.SUBSCRIBER))
        assert signer.media_calls[0]["role"] == 2


class TestMessagingPolicy:
    """Single RTM token."""

    def test_fixed_role(self, signer):
        body = _policy(MessagingIssuancePolicy, signer).issue(
            TokenRequest(subject_id="alice", ttl_seconds=3600)
        )

        assert body.rtm_token == f"rtm:alice:1:{FIXED_NOW + 3600}"
        assert signer.messaging_calls[0]["role"] == MessagingRole.RTM_USER
        assert signer.media_calls == []

    def test_ignores_media_fields(self, signer):
        """Role and identity mode on the request are not consulted."""
        _policy(MessagingIssuancePolicy, signer).issue(
            _request(role=MediaRole.SUBSCRIBER, identity_mode=IdentityMode.BY_ACCOUNT)
        )
        assert signer.messaging_calls[0]["role"] == 1


class TestCombinedPolicy:
    """RTC + RTM tokens in lockstep."""

    def test_shared_expiry(self, signer):
        ticks = iter([FIXED_NOW, FIXED_NOW + 5])
        policy = CombinedIssuancePolicy(CREDENTIALS, signer, clock=lambda: next(ticks))

        body = policy.issue(_request(ttl_seconds=120))

        media_exp = signer.media_calls[0]["privilege_expire_at"]
        messaging_exp = signer.messaging_calls[0]["privilege_expire_at"]
        assert media_exp == messaging_exp == FIXED_NOW + 120
        assert body.rtc_token.endswith(str(FIXED_NOW + 120))
        assert body.rtm_token.endswith(str(FIXED_NOW + 120))

    def test_media_always_numeric_id(self, signer):
        _policy(CombinedIssuancePolicy, signer).issue(
            _request(identity_mode=IdentityMode.BY_ACCOUNT)
        )
        assert signer.media_calls[0]["identity_mode"] is IdentityMode.BY_NUMERIC_ID

    @pytest.mark.parametrize("role", [MediaRole.PUBLISHER, MediaRole.SUBSCRIBER])
    def test_messaging_reuses_media_role(self, signer, role):
        _policy(CombinedIssuancePolicy, signer).issue(_request(role=role))
        assert signer.media_calls[0]["role"] == int(role)
        assert signer.messaging_calls[0]["role"] == int(role)


def test_identical_inputs_give_identical_signer_inputs(signer):
    policy = _policy(MediaIssuancePolicy, signer)
    first = policy.issue(_request())
    second = policy.issue(_request())
    assert signer.media_calls[0] == signer.media_calls[1]
    assert first == second
