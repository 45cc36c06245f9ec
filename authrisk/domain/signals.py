"""Behavioral signal snapshot — what the browser claims it observed.

A SignalSnapshot is a *claim*, not a fact.  Every number arrives from an
untrusted client, so instances are normally produced by
``authrisk.collector.normalize.normalize_signals``, which clamps each field
into the ranges declared here.  The Field bounds repeat those ranges, so
constructing a snapshot directly with out-of-range values fails.

Wire names are camelCase (``elapsedMs``); Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from authrisk.domain.enums import PointerType

# ── Documented ranges ────────────────────────────────────────────────────────

MAX_ELAPSED_MS = 300_000
MAX_ANTI_BOT_SCORE = 100
MAX_INPUT_SWITCH_COUNT = 100
MAX_SLIDER_QUALITY = 100
MAX_SLIDER_ATTEMPTS = 10
MAX_DRAG_DURATION_MS = 30_000

_WIRE_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


# ── Slider ───────────────────────────────────────────────────────────────────

class SliderSignal(BaseModel):
    """Outcome of the client-side slider challenge, as reported by the client."""

    verified: bool = False
    quality_score: float = Field(0, ge=0, le=MAX_SLIDER_QUALITY)
    attempts: float = Field(0, ge=0, le=MAX_SLIDER_ATTEMPTS)
    pointer_type: PointerType = PointerType.UNKNOWN
    drag_duration_ms: float = Field(0, ge=0, le=MAX_DRAG_DURATION_MS)
    reached_end: bool = False

    model_config = _WIRE_CONFIG


# ── Snapshot ─────────────────────────────────────────────────────────────────

class SignalSnapshot(BaseModel):
    """Bounded behavioral telemetry for one form-fill session."""

    elapsed_ms: float = Field(0, ge=0, le=MAX_ELAPSED_MS, description="Form render → submit")
    anti_bot_score: float = Field(
        0, ge=0, le=MAX_ANTI_BOT_SCORE,
        description="Client composite heuristic (advisory only)",
    )
    input_switch_count: float = Field(
        0, ge=0, le=MAX_INPUT_SWITCH_COUNT,
        description="Distinct field focus transitions",
    )
    has_mouse_movement: bool = False
    has_natural_mouse_path: bool = False
    has_natural_input_pattern: bool = False
    has_focus_activity: bool = False
    slider: Optional[SliderSignal] = None

    model_config = _WIRE_CONFIG

    def to_wire(self) -> dict:
        """camelCase JSON-compatible dict, as persisted in audit records."""
        return self.model_dump(mode="json", by_alias=True)
