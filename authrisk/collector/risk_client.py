"""Consumer side of POST /risk/evaluate.

The login and registration flows call ``RiskClient.evaluate()`` before
submitting credentials.  Whatever happens on the wire, the caller gets a
RiskResponse back:

    - transport error, non-2xx status or unreadable body
        → ``default_risk_response()``: medium risk, slider challenge,
          reason ``risk_service_error``, degraded rate limiting
    - 2xx with a JSON object
        → ``coerce_risk_response()``: every field re-validated, unknown
          values replaced by the cautious default

So an outage of the risk service never lets a caller skip the challenge.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from authrisk.collector.normalize import clamp
from authrisk.domain.enums import AuthAction, CaptchaState, ChallengeType, RiskDecision, RiskLevel
from authrisk.domain.signals import SignalSnapshot

logger = logging.getLogger(__name__)

EVALUATE_PATH = "/risk/evaluate"
MAX_REASON_CODES = 12
RISK_SERVICE_ERROR = "risk_service_error"
SERVICE_UNAVAILABLE = "Risk evaluation service unavailable"
EVALUATION_FAILED = "Risk evaluation failed"


class RiskResponse(BaseModel):
    """What the caller acts on: a decision plus the context to explain it."""

    success: bool
    risk_level: RiskLevel = RiskLevel.MEDIUM
    decision: RiskDecision = RiskDecision.CHALLENGE
    challenge_type: ChallengeType = ChallengeType.SLIDER
    cooldown_sec: float = Field(0, ge=0)
    reason_codes: list[str] = Field(default_factory=list, max_length=MAX_REASON_CODES)
    degraded_rate_limit: bool = False
    request_id: Optional[str] = None
    error: Optional[str] = None

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def default_risk_response(error: str = SERVICE_UNAVAILABLE) -> RiskResponse:
    """The answer used whenever the risk service cannot be consulted."""
    return RiskResponse(
        success=False,
        risk_level=RiskLevel.MEDIUM,
        decision=RiskDecision.CHALLENGE,
        challenge_type=ChallengeType.SLIDER,
        cooldown_sec=0,
        reason_codes=[RISK_SERVICE_ERROR],
        degraded_rate_limit=True,
        error=error,
    )


def _enum_or(enum_cls, value: Any, fallback):
    try:
        return enum_cls(value)
    except ValueError:
        return fallback


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def coerce_risk_response(data: dict[str, Any]) -> RiskResponse:
    """Re-validate a successful response body field by field.  Never raises."""
    reason_codes = data.get("reasonCodes")
    if not isinstance(reason_codes, list):
        reason_codes = []

    return RiskResponse(
        success=True,
        risk_level=_enum_or(RiskLevel, data.get("riskLevel"), RiskLevel.MEDIUM),
        decision=_enum_or(RiskDecision, data.get("decision"), RiskDecision.CHALLENGE),
        challenge_type=(
            ChallengeType.NONE if data.get("challengeType") == ChallengeType.NONE.value
            else ChallengeType.SLIDER
        ),
        cooldown_sec=clamp(data.get("cooldownSec"), 0, sys.float_info.max, 0),
        reason_codes=[code for code in reason_codes if isinstance(code, str)][:MAX_REASON_CODES],
        degraded_rate_limit=data.get("degradedRateLimit") is True,
        request_id=_str_or_none(data.get("requestId")),
        error=_str_or_none(data.get("error")),
    )


class RiskClient:
    """Async client for the risk evaluation endpoint.

    Usage:
        async with RiskClient("https://auth.example.com") as client:
            risk = await client.evaluate(AuthAction.LOGIN, CaptchaState.NONE, tracker.snapshot())
            if risk.decision != RiskDecision.ALLOW:
                ...
    """

    def __init__(
        self,
        base_url: str = "",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 5.0,
        path: str = EVALUATE_PATH,
    ) -> None:
        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds,
        )
        self._path = path

    async def evaluate(
        self,
        action: AuthAction,
        captcha_state: CaptchaState,
        signals: SignalSnapshot,
    ) -> RiskResponse:
        payload = {
            "action": action.value,
            "captchaState": captcha_state.value,
            "clientSignals": signals.to_wire(),
        }
        try:
            response = await self._http.post(self._path, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Risk evaluation request failed: %s", exc)
            return default_risk_response()

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error or not isinstance(data, dict):
            error = _str_or_none(data.get("error")) if isinstance(data, dict) else None
            logger.warning(
                "Risk evaluation returned HTTP %d%s",
                response.status_code, f" ({error})" if error else "",
            )
            return default_risk_response(error or EVALUATION_FAILED)

        return coerce_risk_response(data)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> RiskClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
