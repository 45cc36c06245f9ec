"""Risk scoring engine — deterministic score, level and enforcement decision.

Design principles:
    1. Pure function: (action, captcha_state, snapshot, verdict) → RiskEvaluation.
    2. No side effects, no state, no I/O.  Identical inputs → identical output.
    3. The client-side anti-bot score is advisory; it is one term among many.
    4. Reason codes are emitted in the order the checks fire and are never
       deduplicated or reordered.

Scoring (additive points, base 8 for register, 0 for login):
    elapsed < 1200 ms          +25  too_fast
    elapsed < 2200 ms          +10  fast_submit
    antiBotScore < 30          +30  low_behavior_score
    antiBotScore < 50          +18  weak_behavior_score
    antiBotScore > 85           −8
    inputSwitchCount ≤ 1       +12  low_input_switch
    no mouse movement          +10  no_mouse_activity
    unnatural mouse path        +8  unnatural_mouse_path
    unnatural input pattern    +10  unnatural_input
    no focus activity           +6  no_focus_activity
    slider drag in (0, 120) ms +16  drag_too_fast
    slider quality < 30        +20  low_slider_quality
    slider quality < 45        +10  medium_slider_quality
    slider incomplete drag      +6  incomplete_drag
    slider_failed              +25  challenge_failed
    slider_passed              −20  challenge_passed
    degraded rate limit         +5  rate_limit_degraded

The sum is rounded and clamped to [0, 100] exactly once; the level is
derived from that clamped score:
    ≤ 24 low,  ≤ 49 medium,  ≤ 74 high,  else critical.
"""

from __future__ import annotations

import math

from authrisk.domain.enums import AuthAction, CaptchaState, RiskDecision, RiskLevel
from authrisk.domain.rate_limit import RateLimitVerdict
from authrisk.domain.risk import RiskEvaluation
from authrisk.domain.signals import SignalSnapshot

REGISTER_BASE_SCORE = 8

LOW_MAX = 24
MEDIUM_MAX = 49
HIGH_MAX = 74

RATE_LIMITED_COOLDOWN_SEC = 15
HIGH_CHALLENGE_COOLDOWN_SEC = 15
HIGH_THROTTLE_COOLDOWN_SEC = 45
CRITICAL_CHALLENGE_COOLDOWN_SEC = 30
CRITICAL_DENY_COOLDOWN_SEC = 120

REPEATED_FAILURE_ATTEMPTS = 2


# ── Public API ───────────────────────────────────────────────────────────────

def evaluate_risk(
    action: AuthAction,
    captcha_state: CaptchaState,
    snapshot: SignalSnapshot,
    rate_limit: RateLimitVerdict,
) -> RiskEvaluation:
    """Score one authentication attempt and decide how to gate it."""
    raw_score, reason_codes = score_signals(action, captcha_state, snapshot, rate_limit)
    risk_score = clamp_score(raw_score)
    risk_level = level_for_score(risk_score)

    if not rate_limit.allowed:
        # Overrides level-based policy; the level itself is not recomputed
        reason_codes.append("rate_limited")
        decision, cooldown = RiskDecision.CHALLENGE, RATE_LIMITED_COOLDOWN_SEC
    else:
        decision, cooldown = decide(risk_level, captcha_state, snapshot)

    return RiskEvaluation(
        risk_score=risk_score,
        risk_level=risk_level,
        decision=decision,
        cooldown_sec=cooldown,
        reason_codes=reason_codes,
    )


def clamp_score(raw: float) -> int:
    # half-up rounding, like Math.round
    return max(0, min(100, math.floor(raw + 0.5)))


def level_for_score(score: int) -> RiskLevel:
    if score <= LOW_MAX:
        return RiskLevel.LOW
    if score <= MEDIUM_MAX:
        return RiskLevel.MEDIUM
    if score <= HIGH_MAX:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


# ── Scoring ──────────────────────────────────────────────────────────────────

def score_signals(
    action: AuthAction,
    captcha_state: CaptchaState,
    snapshot: SignalSnapshot,
    rate_limit: RateLimitVerdict,
) -> tuple[float, list[str]]:
    """Unclamped additive score plus reason codes in evaluation order."""
    score: float = REGISTER_BASE_SCORE if action == AuthAction.REGISTER else 0
    reasons: list[str] = []

    # ── Timing ───────────────────────────────────────────────────────────
    if snapshot.elapsed_ms < 1200:
        score += 25
        reasons.append("too_fast")
    elif snapshot.elapsed_ms < 2200:
        score += 10
        reasons.append("fast_submit")

    # ── Client composite ─────────────────────────────────────────────────
    if snapshot.anti_bot_score < 30:
        score += 30
        reasons.append("low_behavior_score")
    elif snapshot.anti_bot_score < 50:
        score += 18
        reasons.append("weak_behavior_score")
    elif snapshot.anti_bot_score > 85:
        score -= 8

    # ── Interaction evidence ─────────────────────────────────────────────
    if snapshot.input_switch_count <= 1:
        score += 12
        reasons.append("low_input_switch")
    if not snapshot.has_mouse_movement:
        score += 10
        reasons.append("no_mouse_activity")
    if not snapshot.has_natural_mouse_path:
        score += 8
        reasons.append("unnatural_mouse_path")
    if not snapshot.has_natural_input_pattern:
        score += 10
        reasons.append("unnatural_input")
    if not snapshot.has_focus_activity:
        score += 6
        reasons.append("no_focus_activity")

    # ── Slider kinematics ────────────────────────────────────────────────
    slider = snapshot.slider
    if slider is not None:
        if 0 < slider.drag_duration_ms < 120:
            score += 16
            reasons.append("drag_too_fast")
        if slider.quality_score < 30:
            score += 20
            reasons.append("low_slider_quality")
        elif slider.quality_score < 45:
            score += 10
            reasons.append("medium_slider_quality")
        if not slider.reached_end and slider.attempts > 0:
            score += 6
            reasons.append("incomplete_drag")

    # ── Challenge outcome ────────────────────────────────────────────────
    if captcha_state == CaptchaState.SLIDER_FAILED:
        score += 25
        reasons.append("challenge_failed")
    elif captcha_state == CaptchaState.SLIDER_PASSED:
        score -= 20
        reasons.append("challenge_passed")

    # ── Enforcement infrastructure ───────────────────────────────────────
    if rate_limit.degraded:
        score += 5
        reasons.append("rate_limit_degraded")

    return score, reasons


# ── Decision policy ──────────────────────────────────────────────────────────

def decide(
    level: RiskLevel,
    captcha_state: CaptchaState,
    snapshot: SignalSnapshot,
) -> tuple[RiskDecision, int]:
    """Map a risk level to (decision, cooldown seconds) for an admitted attempt."""
    slider = snapshot.slider
    passed = captcha_state == CaptchaState.SLIDER_PASSED and slider is not None and slider.verified
    repeated_failure = (
        captcha_state == CaptchaState.SLIDER_FAILED
        and slider is not None
        and slider.attempts >= REPEATED_FAILURE_ATTEMPTS
    )
    anti_bot = snapshot.anti_bot_score
    quality = slider.quality_score if slider is not None else 0

    match level:
        case RiskLevel.LOW:
            return RiskDecision.ALLOW, 0
        case RiskLevel.MEDIUM if passed:
            return RiskDecision.ALLOW, 0
        case RiskLevel.MEDIUM:
            return RiskDecision.CHALLENGE, 0
        case RiskLevel.HIGH if passed and anti_bot >= 30:
            return RiskDecision.ALLOW, 0
        case RiskLevel.HIGH if repeated_failure:
            return RiskDecision.THROTTLE, HIGH_THROTTLE_COOLDOWN_SEC
        case RiskLevel.HIGH:
            return RiskDecision.CHALLENGE, HIGH_CHALLENGE_COOLDOWN_SEC
        case RiskLevel.CRITICAL if passed and anti_bot >= 65 and quality >= 60:
            return RiskDecision.ALLOW, 0
        case RiskLevel.CRITICAL if repeated_failure:
            return RiskDecision.DENY, CRITICAL_DENY_COOLDOWN_SEC
        case RiskLevel.CRITICAL:
            return RiskDecision.CHALLENGE, CRITICAL_CHALLENGE_COOLDOWN_SEC
        case _:
            raise ValueError(f"Unhandled risk level: {level!r}")
