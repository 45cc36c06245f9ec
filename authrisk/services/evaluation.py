"""RiskEvaluationService — the one entrypoint the web layer calls.

Flow:  rate-limit chain → scoring engine → audit recorder (best-effort).

The service accepts an opaque identifier; deriving it from IP and user
agent is the caller's job.  Raw IP and user agent are only ever used to
produce one-way digests for the audit event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from authrisk.audit.hashing import fingerprint_hash, hash_ip
from authrisk.audit.recorder import AuditRecorder
from authrisk.core.risk_engine import evaluate_risk
from authrisk.domain.audit import AuditEvent
from authrisk.domain.enums import AuthAction, CaptchaState
from authrisk.domain.rate_limit import RateLimitVerdict
from authrisk.domain.risk import RiskEvaluation
from authrisk.domain.signals import SignalSnapshot
from authrisk.ratelimit.chain import RateLimiterChain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientContext:
    ip: str = "unknown"
    user_agent: str = "unknown"


@dataclass(frozen=True)
class EvaluationOutcome:
    evaluation: RiskEvaluation
    verdict: RateLimitVerdict


class RiskEvaluationService:
    def __init__(self, limiter: RateLimiterChain, recorder: AuditRecorder) -> None:
        self._limiter = limiter
        self._recorder = recorder

    @property
    def limiter(self) -> RateLimiterChain:
        return self._limiter

    @property
    def recorder(self) -> AuditRecorder:
        return self._recorder

    async def evaluate(
        self,
        identifier: str,
        action: AuthAction,
        captcha_state: CaptchaState,
        snapshot: SignalSnapshot,
        client: ClientContext,
        request_id: str,
    ) -> EvaluationOutcome:
        verdict = await self._limiter.check(identifier, action)
        evaluation = evaluate_risk(action, captcha_state, snapshot, verdict)

        logger.info(
            "Risk %s: action=%s score=%d level=%s decision=%s degraded=%s",
            request_id,
            action.value,
            evaluation.risk_score,
            evaluation.risk_level.value,
            evaluation.decision.value,
            verdict.degraded,
        )

        await self._recorder.record(AuditEvent(
            request_id=request_id,
            action=action,
            decision=evaluation.decision,
            risk_level=evaluation.risk_level,
            cooldown_sec=evaluation.cooldown_sec,
            fingerprint_hash=fingerprint_hash(client.user_agent, snapshot, captcha_state),
            ip_hash=hash_ip(client.ip),
            signals=snapshot,
            reason_codes=list(evaluation.reason_codes),
        ))

        return EvaluationOutcome(evaluation=evaluation, verdict=verdict)
