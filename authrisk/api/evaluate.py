"""REST endpoint for authentication risk evaluation.

Path: POST /risk/evaluate

Body:
    {action: "login"|"register",
     captchaState: "none"|"slider_passed"|"slider_failed",
     clientSignals: {...}}

The action is validated strictly (400 on anything else); captcha state
and signals are normalised and never rejected.  Unexpected failures map
to a generic 500 carrying only the request id.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from authrisk.api.identity import client_ip, derive_identifier, user_agent
from authrisk.api.responses import VALIDATION_ERROR, error_response, internal_error_response
from authrisk.api.security import same_origin_guard
from authrisk.collector.normalize import normalize_action, normalize_captcha_state, normalize_signals
from authrisk.foundation.identifiers import new_request_id
from authrisk.services.evaluation import ClientContext, RiskEvaluationService

logger = logging.getLogger(__name__)


async def _read_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def create_evaluate_router(
    service: RiskEvaluationService,
    enforce_same_origin: bool = True,
) -> APIRouter:
    """Factory that wires the evaluate endpoint to a concrete service."""

    router = APIRouter(prefix="/risk", tags=["risk"])

    @router.post("/evaluate")
    async def evaluate(request: Request) -> JSONResponse:
        request_id = new_request_id()

        try:
            if enforce_same_origin:
                blocked = same_origin_guard(request, request_id)
                if blocked is not None:
                    logger.warning("Blocked cross-site risk evaluation (request %s)", request_id)
                    return blocked

            # ── Validate at the boundary ─────────────────────────────────
            body = await _read_body(request)
            action = normalize_action(body.get("action"))
            if action is None:
                logger.info("Rejected risk evaluation with invalid action (request %s)", request_id)
                return error_response(400, VALIDATION_ERROR, "Invalid action", request_id)

            captcha_state = normalize_captcha_state(body.get("captchaState"))
            snapshot = normalize_signals(body.get("clientSignals"))

            # ── Identify the actor ───────────────────────────────────────
            ip = client_ip(request)
            agent = user_agent(request)
            identifier = derive_identifier(action, ip, agent)

            # ── Evaluate ─────────────────────────────────────────────────
            outcome = await service.evaluate(
                identifier=identifier,
                action=action,
                captcha_state=captcha_state,
                snapshot=snapshot,
                client=ClientContext(ip=ip, user_agent=agent),
                request_id=request_id,
            )
            evaluation = outcome.evaluation

            return JSONResponse({
                "success": True,
                "riskLevel": evaluation.risk_level.value,
                "decision": evaluation.decision.value,
                "challengeType": evaluation.challenge_type.value,
                "cooldownSec": evaluation.cooldown_sec,
                "reasonCodes": list(evaluation.reason_codes),
                "degradedRateLimit": outcome.verdict.degraded,
                "requestId": request_id,
            })

        except Exception as exc:
            return internal_error_response(request_id, "risk/evaluate", exc)

    return router
