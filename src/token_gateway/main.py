"""Token gateway entrypoint.

Loads config, sets up logging, builds the token server and serves it
with uvicorn, over TLS when a certificate and key are configured.
"""

from __future__ import annotations

import sys

import uvicorn
from pydantic import ValidationError

from token_gateway.config import get_settings
from token_gateway.logging import get_logger, setup_logging
from token_gateway.token_server.main import create_app


def main() -> None:
    """Main gateway entrypoint."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        setup_logging()
        get_logger("main").error(
            "Invalid configuration: %s",
            exc,
            extra={"event": "config_invalid", "error_code": "config_error"},
        )
        sys.exit(1)

    setup_logging(settings.log_level)
    logger = get_logger("main")

    logger.info("Token gateway starting up")
    logger.info("Listening on %s:%d", settings.host, settings.port)
    logger.info("TLS: %s", "enabled" if settings.tls_enabled else "disabled")

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        ssl_certfile=settings.ssl_certfile if settings.tls_enabled else None,
        ssl_keyfile=settings.ssl_keyfile if settings.tls_enabled else None,
        log_config=None,
    )


if __name__ == "__main__":
    main()
