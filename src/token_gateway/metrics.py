"""Issuance metrics: per-request signing latency and per-endpoint counters."""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from token_gateway.logging import get_logger

logger = get_logger("metrics")


@dataclass
class IssuanceMetrics:
    """Latency metrics for a single token request."""

    endpoint: str = ""
    uid: str = ""

    # Timestamps (monotonic, seconds)
    received_at: float = 0.0
    validated_at: float = 0.0
    signed_at: float = 0.0

    @property
    def validation_ms(self) -> float:
        """Request received to normalizer finished, in milliseconds."""
        if self.received_at and self.validated_at:
            return (self.validated_at - self.received_at) * 1000
        return 0.0

    @property
    def signing_ms(self) -> float:
        """Normalizer finished to last signer call returned."""
        if self.validated_at and self.signed_at:
            return (self.signed_at - self.validated_at) * 1000
        return 0.0

    @property
    def latency_ms(self) -> float:
        if self.received_at and self.signed_at:
            return (self.signed_at - self.received_at) * 1000
        return 0.0

    def summary(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "validation_ms": round(self.validation_ms, 3),
            "signing_ms": round(self.signing_ms, 3),
            "latency_ms": round(self.latency_ms, 3),
        }

    def emit(self) -> None:
        """Log the request metrics summary."""
        logger.debug(
            "Issuance metrics: %s",
            self.summary(),
            extra={"endpoint": self.endpoint, "uid": self.uid},
        )


@dataclass
class MetricsCollector:
    """Accumulates issued/rejected counts per endpoint for the process lifetime.

    Handlers run on the event loop thread without awaiting inside the
    core, so plain counters are enough.
    """

    enabled: bool = True
    issued: Counter[str] = field(default_factory=Counter)
    rejected: Counter[str] = field(default_factory=Counter)

    def start(self, endpoint: str, uid: str = "") -> IssuanceMetrics:
        return IssuanceMetrics(endpoint=endpoint, uid=uid, received_at=self.now())

    def record_issued(self, m: IssuanceMetrics) -> None:
        if not self.enabled:
            return
        self.issued[m.endpoint] += 1
        m.emit()

    def record_rejected(self, endpoint: str, reason: str) -> None:
        if not self.enabled:
            return
        self.rejected[f"{endpoint}:{reason}"] += 1

    def summary(self) -> dict[str, Any]:
        return {
            "issued": dict(self.issued),
            "rejected": dict(self.rejected),
            "issued_total": sum(self.issued.values()),
            "rejected_total": sum(self.rejected.values()),
        }

    @staticmethod
    def now() -> float:
        """Return monotonic timestamp for latency measurement."""
        return time.monotonic()
