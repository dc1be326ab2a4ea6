from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlsplit


TEXT_PLAIN = "text/plain;charset=UTF-8"

# Headers that describe the upstream connection or encoding rather than the
# relayed body; httpx has already decoded content by the time we relay it.
_HOP_BY_HOP = {
    "connection",
    "keep-alive",
    "transfer-encoding",
    "content-encoding",
    "content-length",
    "upgrade",
}


class Method(str, Enum):
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["Method"]:
        """Return the matching method, or None for anything unsupported."""
        try:
            return cls((raw or "").upper())
        except ValueError:
            return None


class Headers(dict):
    """Case-insensitive header mapping (keys stored lowercased)."""

    def __init__(self, items: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__()
        for k, v in (items or {}).items():
            if v is None:
                continue
            self[str(k).lower()] = str(v)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:  # type: ignore[override]
        return super().get(key.lower(), default)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and super().__contains__(key.lower())


@dataclass
class Request:
    method: str
    path: str
    host: str = ""
    scheme: str = "https"
    headers: Headers = field(default_factory=Headers)

    @property
    def hostname(self) -> str:
        """Host without port (and without IPv6 brackets)."""
        return urlsplit(f"//{self.host}").hostname or ""

    @classmethod
    def from_url(cls, method: str, url: str, headers: Optional[Mapping[str, Any]] = None) -> "Request":
        parts = urlsplit(url)
        return cls(
            method=method,
            path=parts.path or "/",
            host=parts.netloc,
            scheme=parts.scheme or "http",
            headers=Headers(headers),
        )

    @classmethod
    def from_lambda_event(cls, event: Mapping[str, Any]) -> "Request":
        """Build a Request from an API Gateway / Function URL proxy event.

        Supports both payload formats:
        - v2 (HTTP API, Function URL): requestContext.http.method, rawPath
        - v1 (REST API): httpMethod, path

        AWS only serves these endpoints over TLS, so the scheme is https
        whenever the event carries a domain name.

        Raises ValueError when no HTTP method can be found.
        """
        ctx = event.get("requestContext") or {}
        http_ctx = ctx.get("http") if isinstance(ctx.get("http"), dict) else {}
        method = http_ctx.get("method") or event.get("httpMethod")
        if not method:
            raise ValueError("Event carries no HTTP method")

        path = event.get("rawPath") or http_ctx.get("path") or event.get("path") or "/"
        headers = Headers(event.get("headers") or {})
        domain = ctx.get("domainName")
        host = headers.get("host") or domain or ""
        return cls(
            method=str(method),
            path=str(path),
            host=str(host),
            scheme="https" if domain else "http",
            headers=headers,
        )


@dataclass
class Response:
    status: int = 200
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def text(cls, body: str, status: int = 200, headers: Optional[Dict[str, str]] = None) -> "Response":
        out = {"Content-Type": TEXT_PLAIN}
        out.update(headers or {})
        return cls(status=status, body=body.encode("utf-8"), headers=out)

    @classmethod
    def json(cls, payload: Any, status: int = 200) -> "Response":
        return cls(
            status=status,
            body=json.dumps(payload, separators=(",", ":")).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    @classmethod
    def empty(cls, headers: Optional[Dict[str, str]] = None, status: int = 200) -> "Response":
        return cls(status=status, body=b"", headers=dict(headers or {}))

    @classmethod
    def relay(cls, status: int, body: bytes, headers: Mapping[str, str]) -> "Response":
        """Wrap an upstream response, dropping connection-level headers."""
        kept = {k: v for k, v in headers.items() if k.lower() not in _HOP_BY_HOP}
        return cls(status=status, body=body, headers=kept)

    @property
    def content_type(self) -> str:
        for k, v in self.headers.items():
            if k.lower() == "content-type":
                return v
        return ""

    def to_lambda(self) -> Dict[str, Any]:
        """Render as a Lambda proxy integration response.

        Text-like bodies (text/*, JSON, SVG, XML) are sent as UTF-8 strings;
        anything else (PNG badges etc.) is base64 encoded.
        """
        out: Dict[str, Any] = {
            "statusCode": self.status,
            "headers": dict(self.headers),
            "isBase64Encoded": False,
            "body": "",
        }
        if not self.body:
            return out
        ctype = self.content_type.lower()
        is_text = ctype.startswith("text/") or "json" in ctype or "xml" in ctype
        if is_text:
            try:
                out["body"] = self.body.decode("utf-8")
                return out
            except UnicodeDecodeError:
                pass
        out["body"] = base64.b64encode(self.body).decode("ascii")
        out["isBase64Encoded"] = True
        return out


# --------------- Error kinds ---------------
class HttpError(Exception):
    """Base for errors that map onto a terminal HTTP response."""

    status: int = 500
    message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message

    def render(self) -> str:
        return self.message

    def to_response(self) -> Response:
        return Response.text(self.render(), status=self.status)


class TransportInsecure(HttpError):
    status = 403
    message = "Secure connection required"


class AuthMalformed(HttpError):
    status = 403
    message = "Malformed authorization header."


class AuthInvalidEncoding(HttpError):
    status = 403
    message = "Invalid authorization value."


class AuthMismatch(HttpError):
    status = 403
    message = "Invalid authorization credentials."


class BadRequest(HttpError):
    status = 400
    message = "Bad Request"


class NotFound(HttpError):
    status = 404
    message = "Not Found"


class MethodNotAllowed(HttpError):
    status = 405
    message = "Method not allowed"


class UpstreamFailure(HttpError):
    """A store or network call failed; rendered as `Error: {cause}`."""

    status = 500

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(str(cause))

    def render(self) -> str:
        return f"Error: {self.cause}"


__all__ = [
    "Method",
    "Headers",
    "Request",
    "Response",
    "HttpError",
    "TransportInsecure",
    "AuthMalformed",
    "AuthInvalidEncoding",
    "AuthMismatch",
    "BadRequest",
    "NotFound",
    "MethodNotAllowed",
    "UpstreamFailure",
]
