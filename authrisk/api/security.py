"""Same-origin write guard for state-changing endpoints.

Rejects a write when the browser tells us it came from another site:
a cross-site ``sec-fetch-site``, a foreign ``origin``, or a foreign or
malformed ``referer``.  Requests without any of these headers pass
(non-browser clients), which is why this is a guard and not authentication.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from fastapi import Request
from fastapi.responses import JSONResponse

from authrisk.api.responses import CSRF_BLOCKED, error_response

_SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}
_ALLOWED_FETCH_SITES = {"same-origin", "same-site", "none"}


def _origin_of(url: str) -> str | None:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def same_origin_guard(request: Request, request_id: str) -> JSONResponse | None:
    """Return a 403 response for cross-site writes, else None."""
    if request.method.upper() in _SAFE_METHODS:
        return None

    own_origin = f"{request.url.scheme}://{request.url.netloc}"
    headers = request.headers

    fetch_site = headers.get("sec-fetch-site")
    if fetch_site and fetch_site not in _ALLOWED_FETCH_SITES:
        return error_response(403, CSRF_BLOCKED, "Cross-site request blocked", request_id)

    origin = headers.get("origin")
    if origin and origin != own_origin:
        return error_response(403, CSRF_BLOCKED, "Invalid request origin", request_id)

    referer = headers.get("referer")
    if referer:
        referer_origin = _origin_of(referer)
        if referer_origin is None:
            return error_response(403, CSRF_BLOCKED, "Malformed referer", request_id)
        if referer_origin != own_origin:
            return error_response(403, CSRF_BLOCKED, "Invalid request referer", request_id)

    return None
