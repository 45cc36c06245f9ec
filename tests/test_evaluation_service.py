"""Tests for the evaluation service: limiter → engine → audit."""

from __future__ import annotations

import pytest

from authrisk.audit.hashing import hash_ip
from authrisk.audit.recorder import AuditRecorder
from authrisk.audit.sinks import MemoryAuditSink
from authrisk.domain.enums import AuthAction, CaptchaState, RiskDecision
from authrisk.domain.rate_limit import RateLimitPolicy
from authrisk.domain.signals import SignalSnapshot
from authrisk.ratelimit.chain import RateLimiterChain
from authrisk.ratelimit.memory import MovingWindowCounter
from authrisk.services.evaluation import ClientContext, RiskEvaluationService


class BrokenSink:
    async def record(self, event) -> None:
        raise ConnectionError("sink down")


def _calm_snapshot() -> SignalSnapshot:
    return SignalSnapshot(
        elapsed_ms=6000,
        anti_bot_score=80,
        input_switch_count=3,
        has_mouse_movement=True,
        has_natural_mouse_path=True,
        has_natural_input_pattern=True,
        has_focus_activity=True,
    )


def _make_service(sink=None, max_attempts: int = 40) -> tuple[RiskEvaluationService, MemoryAuditSink]:
    policy = RateLimitPolicy(max_attempts=max_attempts, window_minutes=5)
    limiter = RateLimiterChain(
        [MovingWindowCounter()],
        policies={AuthAction.LOGIN: policy, AuthAction.REGISTER: policy},
    )
    memory = MemoryAuditSink()
    return RiskEvaluationService(limiter, AuditRecorder(sink if sink is not None else memory)), memory


async def _evaluate(service: RiskEvaluationService, request_id: str = "req-1", identifier: str = "auth:login:abc"):
    return await service.evaluate(
        identifier=identifier,
        action=AuthAction.LOGIN,
        captcha_state=CaptchaState.NONE,
        snapshot=_calm_snapshot(),
        client=ClientContext(ip="198.51.100.7", user_agent="Mozilla/5.0"),
        request_id=request_id,
    )


class TestRiskEvaluationService:
    @pytest.mark.asyncio
    async def test_calm_login_allowed_and_audited(self) -> None:
        service, sink = _make_service()
        outcome = await _evaluate(service)
        assert outcome.evaluation.decision == RiskDecision.ALLOW
        assert outcome.verdict.degraded is False

        event = sink.events[0]
        assert event.request_id == "req-1"
        assert event.decision == RiskDecision.ALLOW
        assert event.ip_hash == hash_ip("198.51.100.7")
        assert event.signals == _calm_snapshot()

    @pytest.mark.asyncio
    async def test_audit_never_contains_raw_client_data(self) -> None:
        service, sink = _make_service()
        await _evaluate(service)
        dumped = sink.events[0].model_dump_json()
        assert "198.51.100.7" not in dumped
        assert "Mozilla" not in dumped

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_evaluation(self) -> None:
        service, _ = _make_service(sink=BrokenSink())
        outcome = await _evaluate(service)
        assert outcome.evaluation.decision == RiskDecision.ALLOW
        assert service.recorder.dropped_count == 1

    @pytest.mark.asyncio
    async def test_limit_exhaustion_forces_challenge(self) -> None:
        service, sink = _make_service(max_attempts=2)
        outcomes = [await _evaluate(service, request_id=f"req-{i}") for i in range(3)]
        assert [o.evaluation.decision for o in outcomes] == [
            RiskDecision.ALLOW, RiskDecision.ALLOW, RiskDecision.CHALLENGE,
        ]
        assert outcomes[-1].evaluation.cooldown_sec == 15
        assert outcomes[-1].evaluation.reason_codes == ["rate_limited"]
        assert len(sink) == 3

    @pytest.mark.asyncio
    async def test_identifiers_limited_independently(self) -> None:
        service, _ = _make_service(max_attempts=1)
        first = await _evaluate(service, identifier="auth:login:aaa")
        second = await _evaluate(service, identifier="auth:login:bbb")
        assert first.verdict.allowed is True
        assert second.verdict.allowed is True
