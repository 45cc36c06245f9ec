"""RiskEvaluation — the immutable output of the scoring engine.

Computed once per request, serialized to the caller and to the audit sink,
never mutated afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from authrisk.domain.enums import ChallengeType, RiskDecision, RiskLevel


class RiskEvaluation(BaseModel):
    risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    decision: RiskDecision
    cooldown_sec: int = Field(0, ge=0)
    reason_codes: list[str] = Field(
        default_factory=list,
        description="Contributing factors in the order the checks fired",
    )

    model_config = {"frozen": True}

    @property
    def challenge_type(self) -> ChallengeType:
        if self.decision == RiskDecision.ALLOW:
            return ChallengeType.NONE
        return ChallengeType.SLIDER
