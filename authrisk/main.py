"""auth-risk — adaptive authentication risk engine.

This is the application entry point.  It wires the rate-limit fallback
chain, the audit recorder, the evaluation service and the HTTP endpoints
together.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from limits.storage import storage_from_string

from authrisk.api.evaluate import create_evaluate_router
from authrisk.audit.recorder import AuditRecorder
from authrisk.audit.sinks import LogAuditSink
from authrisk.config import settings
from authrisk.ratelimit.chain import RateLimiterChain
from authrisk.ratelimit.memory import FixedWindowCounter, MovingWindowCounter
from authrisk.services.evaluation import RiskEvaluationService

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Rate Limiting ────────────────────────────────────────────────────────────

limiter = RateLimiterChain(
    policies=settings.rate_limit_policies(),
    timeout_seconds=settings.rate_limit_timeout_seconds,
)
limiter.register(MovingWindowCounter(storage_from_string(settings.rate_limit_storage_uri)))
limiter.register(FixedWindowCounter())

# ── Audit ────────────────────────────────────────────────────────────────────

recorder = AuditRecorder(LogAuditSink(), timeout_seconds=settings.audit_timeout_seconds)

# ── Service ──────────────────────────────────────────────────────────────────

service = RiskEvaluationService(limiter, recorder)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Adaptive authentication risk engine",
    version="1.0.0",
    debug=settings.debug,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_evaluate_router(service, enforce_same_origin=settings.enforce_same_origin))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "rate_limit_backends": limiter.stats,
        "rate_limit_fail_open": limiter.fail_open_count,
        "audit": recorder.to_dict(),
    }
