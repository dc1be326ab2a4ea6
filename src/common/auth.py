from __future__ import annotations

import base64
import binascii
import logging
import re
import unicodedata
from typing import Callable

from .config import Config
from .http import (
    AuthInvalidEncoding,
    AuthMalformed,
    AuthMismatch,
    HttpError,
    Request,
    Response,
    TransportInsecure,
)


logger = logging.getLogger(__name__)

LOOPBACK_HOST = "localhost"

# RFC 5234 CTL = %x00-1F / %x7F
_CTL_RE = re.compile(r"[\x00-\x1f\x7f]")

Handler = Callable[[Request, Config], Response]


def _require_secure_transport(request: Request) -> None:
    if request.hostname == LOOPBACK_HOST:
        return
    forwarded = (request.headers.get("x-forwarded-proto") or "").strip().lower()
    if request.scheme.lower() != "https" and forwarded != "https":
        raise TransportInsecure()


def _extract_token(request: Request) -> str:
    parts = (request.headers.get("authorization") or "").split(" ")
    if len(parts) != 2:
        raise AuthMalformed()
    scheme, encoded = parts
    if scheme != "Basic" or not encoded:
        raise AuthMalformed()
    return encoded


def decode_credentials(encoded: str) -> str:
    """Decode a Basic credential token into NFC-normalized `user:pass` text.

    Raises AuthInvalidEncoding when the token is not base64, is not UTF-8,
    lacks the `:` separator, or contains control characters.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
        decoded = unicodedata.normalize("NFC", raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError) as ex:
        raise AuthInvalidEncoding() from ex

    if ":" not in decoded or _CTL_RE.search(decoded):
        raise AuthInvalidEncoding()
    return decoded


def check_credentials(request: Request, config: Config) -> None:
    """Run every check in order; raises the first HttpError encountered."""
    _require_secure_transport(request)
    decoded = decode_credentials(_extract_token(request))
    # Joined comparison: a colon inside the username shifts the split point.
    if decoded != config.credentials:
        raise AuthMismatch()


def authenticate(request: Request, config: Config, handler: Handler) -> Response:
    """Invoke `handler` only for requests carrying the configured credentials.

    Any failed check is answered with its 403 response; nothing raised by the
    checks escapes this function.
    """
    try:
        check_credentials(request, config)
    except HttpError as err:
        logger.info("Rejected %s %s: %s", request.method, request.path, err.message)
        return err.to_response()
    return handler(request, config)
