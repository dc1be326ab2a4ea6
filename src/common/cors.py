from __future__ import annotations

from typing import Dict

from .http import Request, Response


CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,PUT,OPTIONS,DELETE",
    "Access-Control-Max-Age": "86400",
}

ALLOW_HEADER = "HEAD, GET, PUT, OPTIONS, DELETE"

_PREFLIGHT_HEADERS = (
    "origin",
    "access-control-request-method",
    "access-control-request-headers",
)


def is_preflight(request: Request) -> bool:
    return all(request.headers.get(name) is not None for name in _PREFLIGHT_HEADERS)


def head_response() -> Response:
    return Response.empty(headers=CORS_HEADERS)


def options_response(request: Request) -> Response:
    """Answer a CORS preflight, or a plain OPTIONS with just `Allow`."""
    if not is_preflight(request):
        return Response.empty(headers={"Allow": ALLOW_HEADER})

    headers = dict(CORS_HEADERS)
    # Echo whatever the browser asked for (e.g. Authorization)
    headers["Access-Control-Allow-Headers"] = request.headers.get("access-control-request-headers") or ""
    return Response.empty(headers=headers)
