"""FastAPI token server for Agora RTC/RTM tokens."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.convertors import StringConvertor, register_url_convertor

from token_gateway.config import Settings, get_settings
from token_gateway.logging import get_logger
from token_gateway.metrics import MetricsCollector
from token_gateway.signing.agora import AgoraSigner
from token_gateway.signing.base import CredentialSigner
from token_gateway.token_server.normalizer import (
    EndpointFamily,
    TokenValidationError,
    normalize,
)
from token_gateway.token_server.policy import (
    Clock,
    CombinedIssuancePolicy,
    IssuancePolicy,
    MediaIssuancePolicy,
    MessagingIssuancePolicy,
    unix_now,
)
from token_gateway.token_server.schemas import (
    ErrorResponse,
    PingResponse,
    RtcTokenResponse,
    RteTokenResponse,
    RtmTokenResponse,
)

logger = get_logger("token_server")

NO_CACHE_HEADERS = {
    "Cache-Control": "private, no-cache, no-store, must-revalidate",
    "Expires": "-1",
    "Pragma": "no-cache",
}
TOKEN_ROUTE_PREFIXES = ("/rtc/", "/rtm/", "/rte/")


class SegmentConvertor(StringConvertor):
    """Path segment that may be empty, so ``/rtc//publisher/uid/1`` still routes."""

    regex = "[^/]*"

    def to_string(self, value: str) -> str:
        value = str(value)
        assert "/" not in value, "May not contain path separators"
        return value


register_url_convertor("segment", SegmentConvertor())

_BAD_REQUEST = {400: {"model": ErrorResponse}}

router = APIRouter()


def _issue(request: Request, family: EndpointFamily, **raw: str | None) -> Any:
    """Normalize, apply the family's policy, and record the outcome."""
    state = request.app.state
    policy: IssuancePolicy = state.policies[family]
    metrics: MetricsCollector = state.metrics
    settings: Settings = state.settings

    subject = raw.get("subject") or ""
    m = metrics.start(family.value, subject)
    try:
        token_request = normalize(
            family, default_expiry=settings.default_expiry_seconds, **raw
        )
        m.validated_at = metrics.now()
        body = policy.issue(token_request)
    except TokenValidationError as exc:
        metrics.record_rejected(family.value, exc.message)
        logger.info(
            "Token request rejected: %s",
            exc.message,
            extra={
                "endpoint": family.value,
                "channel": raw.get("channel"),
                "uid": subject,
                "event": "token_rejected",
                "error_code": "validation_error",
            },
        )
        raise
    m.signed_at = metrics.now()
    metrics.record_issued(m)

    logger.info(
        "Token issued for %s/%s (%s, ttl=%ds)",
        token_request.channel_name or "-",
        token_request.subject_id,
        family.value,
        token_request.ttl_seconds,
        extra={
            "endpoint": family.value,
            "channel": token_request.channel_name,
            "uid": token_request.subject_id,
            "event": "token_issued",
        },
    )
    return body


@router.get("/ping", response_model=PingResponse)
async def ping() -> PingResponse:
    return PingResponse()


@router.get(
    "/rtc/{channel:segment}/{role:segment}/{tokentype:segment}/{uid:segment}",
    response_model=RtcTokenResponse,
    responses=_BAD_REQUEST,
)
async def rtc_token(
    request: Request,
    channel: str,
    role: str,
    tokentype: str,
    uid: str,
    expiry: str | None = None,
) -> RtcTokenResponse:
    """Issue a media token by numeric uid or by user account."""
    return _issue(
        request,
        EndpointFamily.MEDIA,
        channel=channel,
        subject=uid,
        role=role,
        token_type=tokentype,
        expiry=expiry,
    )


@router.get(
    "/rtm/{uid:segment}",
    response_model=RtmTokenResponse,
    responses=_BAD_REQUEST,
)
@router.get(
    "/rtm/{uid:segment}/",
    response_model=RtmTokenResponse,
    responses=_BAD_REQUEST,
    include_in_schema=False,
)
async def rtm_token(request: Request, uid: str, expiry: str | None = None) -> RtmTokenResponse:
    """Issue a messaging token."""
    return _issue(request, EndpointFamily.MESSAGING, subject=uid, expiry=expiry)


@router.get(
    "/rte/{channel:segment}/{role:segment}/{tokentype:segment}/{uid:segment}",
    response_model=RteTokenResponse,
    responses=_BAD_REQUEST,
)
async def rte_token(
    request: Request,
    channel: str,
    role: str,
    tokentype: str,
    uid: str,
    expiry: str | None = None,
) -> RteTokenResponse:
    """Issue media and messaging tokens that expire together.

    ``tokentype`` is accepted for URL compatibility but not consulted.
    """
    del tokentype
    return _issue(
        request,
        EndpointFamily.COMBINED,
        channel=channel,
        subject=uid,
        role=role,
        expiry=expiry,
    )


async def _validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, TokenValidationError)
    return JSONResponse(status_code=400, content=ErrorResponse(error=exc.message).model_dump())


def _allowed_origin(request: Request) -> str | None:
    """Origin to grant on a token response, or None to leave it to CORSMiddleware."""
    allowed: list[str] = request.app.state.settings.cors_allow_origins
    if "*" in allowed:
        return "*"
    origin = request.headers.get("origin")
    return origin if origin in allowed else None


async def _response_headers(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    response = await call_next(request)
    response.headers.update(NO_CACHE_HEADERS)
    if request.url.path.startswith(TOKEN_ROUTE_PREFIXES):
        origin = _allowed_origin(request)
        if origin is not None:
            response.headers["Access-Control-Allow-Origin"] = origin
            if origin != "*":
                response.headers.add_vary_header("Origin")
    return response


def create_app(
    settings: Settings | None = None,
    signer: CredentialSigner | None = None,
    clock: Clock = unix_now,
) -> FastAPI:
    """Build the token server.

    Settings and signer are constructed once here and shared read-only
    by every request.
    """
    settings = settings or get_settings()
    signer = signer or AgoraSigner()
    credentials = settings.credentials
    metrics = MetricsCollector(enabled=settings.metrics_enabled)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Token server starting for app %s",
            credentials.app_id,
            extra={"event": "server_started"},
        )
        yield
        logger.info(
            "Token server stopping: %s",
            metrics.summary(),
            extra={"event": "server_stopped"},
        )

    app = FastAPI(
        title="Agora Token Server",
        version="0.1.0",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.policies = {
        EndpointFamily.MEDIA: MediaIssuancePolicy(credentials, signer, clock),
        EndpointFamily.MESSAGING: MessagingIssuancePolicy(credentials, signer, clock),
        EndpointFamily.COMBINED: CombinedIssuancePolicy(credentials, signer, clock),
    }

    app.middleware("http")(_response_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TokenValidationError, _validation_error_handler)
    app.include_router(router)
    return app
