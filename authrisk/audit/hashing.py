"""One-way digests for everything identifying that reaches the audit sink."""

from __future__ import annotations

import hashlib

from authrisk.domain.enums import CaptchaState
from authrisk.domain.signals import SignalSnapshot


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_ip(ip: str) -> str:
    return sha256_hex(ip)


def fingerprint_hash(user_agent: str, snapshot: SignalSnapshot, captcha_state: CaptchaState) -> str:
    """Composite client fingerprint: user agent plus the coarse signal shape."""
    parts = [
        user_agent,
        _js_number(snapshot.elapsed_ms),
        _js_number(snapshot.anti_bot_score),
        _js_number(snapshot.input_switch_count),
        captcha_state.value,
    ]
    return sha256_hex("|".join(parts))


def _js_number(value: float) -> str:
    # 1500.0 → "1500", so digests agree with browser-side String(n)
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
