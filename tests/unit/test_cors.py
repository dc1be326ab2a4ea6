from __future__ import annotations

from common.cors import ALLOW_HEADER, CORS_HEADERS, head_response, options_response
from common.http import Request


def test_head_response_is_empty_with_cors_headers():
    resp = head_response()
    assert resp.status == 200
    assert resp.body == b""
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Access-Control-Allow-Methods"] == "GET,HEAD,PUT,OPTIONS,DELETE"
    assert resp.headers["Access-Control-Max-Age"] == "86400"


def test_preflight_echoes_requested_headers():
    req = Request.from_url(
        "OPTIONS",
        "https://counter.example.com/mytask",
        {
            "Origin": "https://dash.example.com",
            "Access-Control-Request-Method": "PUT",
            "Access-Control-Request-Headers": "Authorization, X-Client-Name-Version",
        },
    )
    resp = options_response(req)

    assert resp.status == 200
    for k, v in CORS_HEADERS.items():
        assert resp.headers[k] == v
    assert resp.headers["Access-Control-Allow-Headers"] == "Authorization, X-Client-Name-Version"
    assert "Allow" not in resp.headers


def test_preflight_with_empty_requested_headers():
    req = Request.from_url(
        "OPTIONS",
        "https://counter.example.com/",
        {"origin": "x", "access-control-request-method": "GET", "access-control-request-headers": ""},
    )
    resp = options_response(req)
    assert resp.headers["Access-Control-Allow-Headers"] == ""


def test_plain_options_gets_allow_header_only():
    req = Request.from_url(
        "OPTIONS",
        "https://counter.example.com/mytask",
        {"Origin": "https://dash.example.com", "Access-Control-Request-Method": "PUT"},
    )
    resp = options_response(req)

    assert resp.status == 200
    assert resp.headers == {"Allow": ALLOW_HEADER}
    assert resp.body == b""
