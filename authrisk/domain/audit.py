"""AuditEvent — write-only record of one risk decision.

IMPORTANT: ``fingerprint_hash`` and ``ip_hash`` are one-way SHA-256 digests.
Raw IP addresses and raw user-agent strings must never reach this model.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from authrisk.domain.enums import AuthAction, RiskDecision, RiskLevel
from authrisk.domain.signals import SignalSnapshot
from authrisk.foundation.clock import utc_now


class AuditEvent(BaseModel):
    request_id: str
    action: AuthAction
    decision: RiskDecision
    risk_level: RiskLevel
    cooldown_sec: int = Field(..., ge=0)
    fingerprint_hash: str = Field(..., min_length=64, max_length=64)
    ip_hash: str = Field(..., min_length=64, max_length=64)
    signals: SignalSnapshot
    reason_codes: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {"frozen": True}
