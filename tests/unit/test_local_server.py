from __future__ import annotations

import base64
import threading
from http.server import ThreadingHTTPServer
from typing import Dict, List, Optional

import httpx
import pytest

from common.config import Config
from common.http import Response


class _MemoryStore:
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def list_tasks(self) -> List[str]:
        return sorted(self.data)

    def get(self, name: str) -> Optional[str]:
        return self.data.get(name)

    def put(self, name: str, value: str) -> None:
        self.data[name] = value

    def delete(self, name: str) -> None:
        self.data.pop(name, None)


class _StaticBadges:
    def fetch(self, message: str, task: str) -> Response:
        return Response(status=200, body=f"{message}|{task}".encode("utf-8"), headers={"Content-Type": "text/plain"})


@pytest.fixture
def server(monkeypatch: pytest.MonkeyPatch):
    from counter import local

    store = _MemoryStore()
    config = Config(username="dev", password="pw")
    monkeypatch.setattr(local, "_runtime", lambda: (config, store, _StaticBadges()))

    srv = ThreadingHTTPServer(("localhost", 0), local.CounterRequestHandler)
    t = threading.Thread(target=srv.serve_forever, daemon=True)
    t.start()
    try:
        yield f"http://localhost:{srv.server_address[1]}", store
    finally:
        srv.shutdown()
        srv.server_close()


def test_localhost_allows_basic_auth_over_plain_http(server):
    base, store = server
    auth = "Basic " + base64.b64encode(b"dev:pw").decode("ascii")

    with httpx.Client(base_url=base, trust_env=False) as client:
        put = client.put("/local-task", headers={"Authorization": auth})
        listing = client.get("/")
        badge = client.get("/local-task")
        patch = client.patch("/local-task")

    assert put.status_code == 200
    assert put.text == "Great work!"
    assert listing.json() == {"tasks": ["local task"]}
    assert badge.text == "its been 0 days since|local task"
    assert patch.status_code == 405
    assert "local task" in store.data
