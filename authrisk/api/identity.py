"""Actor identification for the HTTP layer.

The risk service only ever sees the opaque identifier built here.
"""

from __future__ import annotations

from fastapi import Request

from authrisk.audit.hashing import sha256_hex
from authrisk.domain.enums import AuthAction

UNKNOWN = "unknown"


def client_ip(request: Request) -> str:
    """Best client IP: Cloudflare header, then the first X-Forwarded-For hop."""
    cf_ip = request.headers.get("cf-connecting-ip")
    if cf_ip and cf_ip.strip():
        return cf_ip.strip()
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return UNKNOWN
    return forwarded.split(",")[0].strip() or UNKNOWN


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


def derive_identifier(action: AuthAction, ip: str, agent: str) -> str:
    return f"auth:{action.value}:{sha256_hex(f'{ip}|{agent}')[:32]}"
