from __future__ import annotations

import base64
from typing import List

import pytest

from common.auth import authenticate, decode_credentials
from common.config import Config
from common.http import AuthInvalidEncoding, Request, Response


CONFIG = Config(username="alice", password="s3cret")


def _basic(raw: str | bytes) -> str:
    data = raw.encode("utf-8") if isinstance(raw, str) else raw
    return "Basic " + base64.b64encode(data).decode("ascii")


def _req(authorization: str | None = None, url: str = "https://counter.example.com/mytask", **headers) -> Request:
    h = dict(headers)
    if authorization is not None:
        h["Authorization"] = authorization
    return Request.from_url("PUT", url, h)


class _Recorder:
    def __init__(self) -> None:
        self.calls: List[Request] = []
        self.configs: List[Config] = []

    def __call__(self, request: Request, config: Config) -> Response:
        self.calls.append(request)
        self.configs.append(config)
        return Response.text("handled")


def test_valid_credentials_invoke_handler():
    handler = _Recorder()
    req = _req(_basic("alice:s3cret"))

    resp = authenticate(req, CONFIG, handler)

    assert resp.status == 200
    assert resp.body == b"handled"
    assert handler.calls == [req]
    assert handler.configs == [CONFIG]


def test_single_bit_flip_in_password_is_mismatch():
    handler = _Recorder()
    flipped = chr(ord("s") ^ 0x01) + "3cret"

    resp = authenticate(_req(_basic(f"alice:{flipped}")), CONFIG, handler)

    assert resp.status == 403
    assert resp.body == b"Invalid authorization credentials."
    assert handler.calls == []


@pytest.mark.parametrize("header", [None, "", "Basic", "Basic ", "Digest abc", "basic YWxpY2U6czNjcmV0", "Basic a b"])
def test_malformed_headers(header):
    handler = _Recorder()
    resp = authenticate(_req(header), CONFIG, handler)

    assert resp.status == 403
    assert resp.body == b"Malformed authorization header."
    assert handler.calls == []


def test_nul_byte_rejected_even_if_otherwise_matching():
    resp = authenticate(_req(_basic("alice:s3cret\x00")), CONFIG, _Recorder())
    assert resp.status == 403
    assert resp.body == b"Invalid authorization value."


@pytest.mark.parametrize(
    "header",
    [
        "Basic !!!not-base64!!!",
        _basic("no-colon-here"),
        _basic(b"alice:\xff\xfe"),
        _basic("alice:pass\x7f"),
        _basic("ali\tce:s3cret"),
    ],
)
def test_invalid_values(header):
    resp = authenticate(_req(header), CONFIG, _Recorder())
    assert resp.status == 403
    assert resp.body == b"Invalid authorization value."


def test_insecure_transport_rejected_before_header_checks():
    resp = authenticate(_req(None, url="http://counter.example.com/mytask"), CONFIG, _Recorder())
    assert resp.status == 403
    assert resp.body == b"Secure connection required"


def test_forwarded_proto_counts_as_secure():
    handler = _Recorder()
    req = _req(_basic("alice:s3cret"), url="http://counter.example.com/mytask", **{"X-Forwarded-Proto": "https"})

    assert authenticate(req, CONFIG, handler).status == 200
    assert len(handler.calls) == 1


def test_localhost_skips_transport_check():
    handler = _Recorder()
    req = _req(_basic("alice:s3cret"), url="http://localhost:8787/mytask")

    assert authenticate(req, CONFIG, handler).status == 200


def test_nfc_normalization_applies_before_comparison():
    config = Config(username="jos\u00e9", password="pw")
    handler = _Recorder()
    decomposed = "jose\u0301:pw"  # 'e' + combining acute accent

    resp = authenticate(_req(_basic(decomposed)), config, handler)

    assert resp.status == 200
    assert len(handler.calls) == 1


def test_unset_credentials_require_explicit_empty_pair():
    empty = Config()
    assert authenticate(_req(_basic(":")), empty, _Recorder()).status == 200
    assert authenticate(_req(_basic("anyone:anything")), empty, _Recorder()).status == 403


def test_joined_comparison_lets_colon_shift_between_user_and_password():
    config = Config(username="a:b", password="c")
    assert authenticate(_req(_basic("a:b:c")), config, _Recorder()).status == 200


def test_decode_credentials_raises_typed_error():
    with pytest.raises(AuthInvalidEncoding):
        decode_credentials("####")
