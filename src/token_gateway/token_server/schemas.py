"""Response schemas for the token server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _TokenBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class PingResponse(BaseModel):
    """GET /ping response body."""

    message: str = "pong"


class RtcTokenResponse(_TokenBody):
    """GET /rtc/... response body."""

    rtc_token: str = Field(..., alias="rtcToken")


class RtmTokenResponse(_TokenBody):
    """GET /rtm/... response body."""

    rtm_token: str = Field(..., alias="rtmToken")


class RteTokenResponse(_TokenBody):
    """GET /rte/... response body: both tokens, same expiry."""

    rtc_token: str = Field(..., alias="rtcToken")
    rtm_token: str = Field(..., alias="rtmToken")


class ErrorResponse(BaseModel):
    """Body of every 400 response."""

    error: str
