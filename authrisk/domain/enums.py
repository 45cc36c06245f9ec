"""Controlled enumerations for the auth-risk domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class AuthAction(str, Enum):
    """The authentication attempt being gated."""

    LOGIN = "login"
    REGISTER = "register"


class CaptchaState(str, Enum):
    """Client-reported slider challenge outcome.  A hint, never ground truth."""

    NONE = "none"
    SLIDER_PASSED = "slider_passed"
    SLIDER_FAILED = "slider_failed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskDecision(str, Enum):
    """Enforcement outcome handed back to the web layer."""

    ALLOW = "allow"
    CHALLENGE = "challenge"
    THROTTLE = "throttle"
    DENY = "deny"


class ChallengeType(str, Enum):
    NONE = "none"
    SLIDER = "slider_v2"


class PointerType(str, Enum):
    """Input device that produced a drag gesture."""

    MOUSE = "mouse"
    TOUCH = "touch"
    PEN = "pen"
    UNKNOWN = "unknown"


class SliderStatus(str, Enum):
    """Lifecycle of a slider challenge: idle → dragging → {success, failed}."""

    IDLE = "idle"
    DRAGGING = "dragging"
    SUCCESS = "success"
    FAILED = "failed"
