"""
Fake Glowroot /backend server for testing without a real Glowroot.

    python -m glowroot_exporter.mock.fake_glowroot_server
    glowroot-exporter --config config.yaml   (glowroot_url: http://localhost:4000)
"""

from __future__ import annotations

import json
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Iterable, Optional, Type
from urllib.parse import parse_qs, urlsplit

from glowroot_exporter.mock.generator import MockGlowroot


class _GlowrootHandler(BaseHTTPRequestHandler):
    mock = MockGlowroot()

    # ids whose requests get a 500, and ids whose requests get a non-JSON body
    error_ids: frozenset = frozenset()
    garbage_ids: frozenset = frozenset()

    def do_GET(self):
        parts = urlsplit(self.path)
        query = {k: v[0] for k, v in parse_qs(parts.query).items()}
        node_id = query.get("top-level-id") or query.get("agent-rollup-id")

        if node_id in self.error_ids:
            self._send(500, b"internal error", "text/plain")
            return
        if node_id in self.garbage_ids:
            self._send(200, b"<html>not json</html>", "text/html")
            return

        if parts.path == "/backend/top-level-agent-rollups":
            self.mock.advance()
            payload = self.mock.groups_payload()
        elif parts.path == "/backend/child-agent-rollups":
            payload = self.mock.members_payload(node_id)
        elif parts.path == "/backend/error/summaries":
            payload = self.mock.error_summary_payload(node_id)
        elif parts.path == "/backend/transaction/summaries":
            payload = self.mock.transaction_summary_payload(
                node_id, limit=int(query.get("limit", 10))
            )
        else:
            self._send(404, b"not found", "text/plain")
            return

        self._send(200, json.dumps(payload).encode(), "application/json")

    def _send(self, status: int, body: bytes, content_type: str):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


def make_handler(
    mock: Optional[MockGlowroot] = None,
    error_ids: Iterable[str] = (),
    garbage_ids: Iterable[str] = (),
) -> Type[_GlowrootHandler]:
    """Handler class with its own generator and failure switches."""
    return type("GlowrootHandler", (_GlowrootHandler,), {
        "mock": mock if mock is not None else MockGlowroot(),
        "error_ids": frozenset(error_ids),
        "garbage_ids": frozenset(garbage_ids),
    })


def run_fake_server(host: str = "127.0.0.1", port: int = 4000):
    server = HTTPServer((host, port), make_handler())
    print(f"Fake Glowroot server running at http://{host}:{port}/backend/")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
