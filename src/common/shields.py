from __future__ import annotations

from typing import Optional
from urllib.parse import quote

import httpx

from .http import Response


DEFAULT_BASE_URL = "https://img.shields.io"
DEFAULT_COLOR = "green"


class BadgeError(RuntimeError):
    """The badge service could not be reached."""


def escape_segment(text: str) -> str:
    """Escape one path segment of a shields.io static badge.

    Literal dashes and underscores are doubled (single ones are separators /
    spaces for shields.io), then the segment is percent-encoded.
    """
    doubled = text.replace("-", "--").replace("_", "__")
    return quote(doubled, safe="")


class ShieldsClient:
    """
    Minimal shields.io client that fetches static badges.

    Notes
    - Builds `{base_url}/badge/{message}-{task}-{color}`.
    - Does not retry; a non-2xx answer from shields.io is returned as-is so
      the caller can relay it.
    - Only transport failures raise (`BadgeError`).
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        color: str = DEFAULT_COLOR,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._color = color
        self._timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self._timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "ShieldsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------------- Public API ---------------
    def badge_url(self, message: str, task: str) -> str:
        return (
            f"{self._base_url}/badge/"
            f"{escape_segment(message)}-{escape_segment(task)}-{escape_segment(self._color)}"
        )

    def fetch(self, message: str, task: str) -> Response:
        url = self.badge_url(message, task)
        try:
            resp = self._client.get(url)
        except httpx.HTTPError as exc:
            raise BadgeError(f"Badge request failed: {exc}") from exc
        return Response.relay(resp.status_code, resp.content, resp.headers)


__all__ = ["ShieldsClient", "BadgeError", "escape_segment"]
