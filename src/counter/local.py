"""
Local development server.

Serves the same router as the Lambda entry point on http://localhost:8787,
for manual testing with curl or a browser. Requests addressed to `localhost`
skip the secure-transport check, so Basic auth works over plain HTTP here.

Usage:
    TASK_BUCKET=my-bucket COUNTER_USERNAME=me COUNTER_PASSWORD=secret \
        python -m counter.local [--port 8787]
"""
from __future__ import annotations

import argparse
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from common.http import Headers, Request
from counter.handler import _runtime, route


logger = logging.getLogger(__name__)

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8787


class CounterRequestHandler(BaseHTTPRequestHandler):
    def _dispatch(self) -> None:
        config, store, badges = _runtime()
        request = Request(
            method=self.command,
            path=urlsplit(self.path).path or "/",
            host=self.headers.get("Host", DEFAULT_HOST),
            scheme="http",
            headers=Headers(dict(self.headers.items())),
        )
        response = route(request, config, store, badges)

        self.send_response(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(response.body)))
        self.end_headers()
        if self.command != "HEAD" and response.body:
            self.wfile.write(response.body)

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_OPTIONS = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch
    do_POST = _dispatch
    do_PATCH = _dispatch

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.info("%s - %s", self.address_string(), format % args)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Run the days-since counter locally.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)

    _runtime()  # configure logging and fail fast on missing config
    server = ThreadingHTTPServer((DEFAULT_HOST, args.port), CounterRequestHandler)
    logger.info("Serving on http://%s:%d", DEFAULT_HOST, args.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
