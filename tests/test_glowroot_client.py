"""
Tests for the live Glowroot client.

Query building is checked against httpx.MockTransport; the end-to-end tests
start the fake Glowroot server in a thread and point the client at it.
"""

import threading
import time
from http.server import HTTPServer

import httpx
import pytest

from glowroot_exporter.collector.glowroot_client import GlowrootClient
from glowroot_exporter.collector.poller import Poller
from glowroot_exporter.errors import DecodeError, TransportError
from glowroot_exporter.metrics import ALL_FAMILIES
from glowroot_exporter.mock.fake_glowroot_server import make_handler
from glowroot_exporter.models import TimeWindow
from glowroot_exporter.storage.snapshot_store import SnapshotStore

WINDOW = TimeWindow(from_ms=1_000, to_ms=301_000)


def _start_test_server(port: int, **handler_options) -> HTTPServer:
    server = HTTPServer(("127.0.0.1", port), make_handler(**handler_options))
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    time.sleep(0.2)  # let it bind
    return server


def _recording_client(payload, status: int = 200, content: bytes = None):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if content is not None:
            return httpx.Response(status, content=content)
        return httpx.Response(status, json=payload)

    client = GlowrootClient("http://glowroot.local:4000/", transport=httpx.MockTransport(handler))
    return client, requests


def test_groups_query():
    client, requests = _recording_client([{"id": "g1", "display": "G1", "children": []}])
    groups = client.fetch_groups(WINDOW)

    assert [(g.id, g.display_name) for g in groups] == [("g1", "G1")]
    url = requests[0].url
    assert url.path == "/backend/top-level-agent-rollups"
    assert url.params["from"] == "1000"
    assert url.params["to"] == "301000"


def test_members_query_escapes_group_id():
    client, requests = _recording_client([{"id": "a b::c", "display": "C"}])
    members = client.fetch_members("shop & co", WINDOW)

    assert members[0].id == "a b::c"
    url = requests[0].url
    assert url.path == "/backend/child-agent-rollups"
    assert url.params["top-level-id"] == "shop & co"
    assert b"shop+%26+co" in url.query or b"shop%20%26%20co" in url.query


def test_error_summary_query_and_decode():
    client, requests = _recording_client({
        "overall": {"errorCount": 3, "transactionCount": 10},
        "transactions": [{"transactionName": "GET /x", "errorCount": 2, "transactionCount": 5}],
    })
    summary = client.fetch_error_summary("m1", WINDOW)

    assert summary.error_count == 3
    assert summary.transactions[0].transaction_name == "GET /x"
    params = requests[0].url.params
    assert requests[0].url.path == "/backend/error/summaries"
    assert params["agent-rollup-id"] == "m1"
    assert params["transaction-type"] == "Web"
    assert params["sort-order"] == "error-count"
    assert params["limit"] == "1000"


def test_transaction_summary_query_and_decode():
    client, requests = _recording_client({
        "overall": {"totalDurationNanos": 1000.0, "transactionCount": 10},
        "transactions": [
            {"transactionName": "GET /x", "totalDurationNanos": 700.0, "transactionCount": 5},
        ],
    })
    summary = client.fetch_transaction_summary("m1", WINDOW)

    assert summary.transaction_count == 10
    assert summary.transactions[0].total_duration_nanos == 700.0
    params = requests[0].url.params
    assert requests[0].url.path == "/backend/transaction/summaries"
    assert params["sort-order"] == "total-time"
    assert params["limit"] == "10"


def test_http_error_status_is_transport_error():
    client, _ = _recording_client(None, status=500, content=b"oops")
    with pytest.raises(TransportError):
        client.fetch_groups(WINDOW)


def test_invalid_json_is_decode_error():
    client, _ = _recording_client(None, content=b"<html>login</html>")
    with pytest.raises(DecodeError):
        client.fetch_groups(WINDOW)


def test_wrong_shape_is_decode_error():
    client, _ = _recording_client({"not": "a list"})
    with pytest.raises(DecodeError):
        client.fetch_groups(WINDOW)


def test_connection_refused_is_transport_error():
    client = GlowrootClient("http://127.0.0.1:1", timeout_seconds=0.5)
    try:
        with pytest.raises(TransportError):
            client.fetch_groups(WINDOW)
    finally:
        client.close()


def test_name_includes_url():
    client = GlowrootClient("http://localhost:4000/")
    assert "localhost:4000" in client.name()
    assert not client.name().endswith("/)")
    client.close()


def test_poller_against_fake_server():
    server = _start_test_server(19886)
    try:
        client = GlowrootClient("http://127.0.0.1:19886")
        store = SnapshotStore(ALL_FAMILIES)
        report = Poller(client, store).run_cycle()

        assert report.ok
        assert report.groups == 3
        assert report.members == 5
        assert store.get("group_info", ("checkout", "Checkout")) == 1.0
        assert store.get("member_of_group", ("auth service", "auth service::node a")) == 1.0
        assert store.get("slow_trace_total_count", ("catalog", "catalog::api-1")) > 0

        client.close()
    finally:
        server.shutdown()


def test_fake_server_failures_are_isolated():
    server = _start_test_server(19887, error_ids={"catalog"}, garbage_ids={"checkout::web-1"})
    try:
        client = GlowrootClient("http://127.0.0.1:19887")
        store = SnapshotStore(ALL_FAMILIES)
        report = Poller(client, store).run_cycle()

        # A broken error summary skips that agent's transaction summary too
        assert sorted(report.failures) == [
            "error_summary:checkout::web-1",
            "members:catalog",
        ]
        assert store.get("group_info", ("catalog", "Catalog")) == 1.0
        assert store.get("member_of_group", ("catalog", "catalog::api-1")) is None
        assert store.get("member_of_group", ("checkout", "checkout::web-1")) == 1.0
        assert store.get("error_total_count", ("checkout", "checkout::web-1")) is None
        assert store.get("slow_trace_total_count", ("checkout", "checkout::web-1")) is None
        assert store.get("error_total_count", ("checkout", "checkout::web-2")) is not None

        client.close()
    finally:
        server.shutdown()


def test_fake_server_failure_switches_are_per_server():
    server = _start_test_server(19888)
    try:
        client = GlowrootClient("http://127.0.0.1:19888")
        report = Poller(client, SnapshotStore(ALL_FAMILIES)).run_cycle()
        assert report.ok
        client.close()
    finally:
        server.shutdown()


def test_unencodable_group_id_does_not_stop_the_loop():
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/backend/top-level-agent-rollups":
            body = '[{"id": "bad\\ud800", "display": "Bad"}, {"id": "ok", "display": "OK"}]'
            return httpx.Response(200, content=body.encode(), headers={"content-type": "application/json"})
        if path == "/backend/child-agent-rollups":
            return httpx.Response(200, json=[{"id": "m1", "display": "M1"}])
        if path == "/backend/error/summaries":
            return httpx.Response(200, json={"overall": {"errorCount": 1, "transactionCount": 2}})
        return httpx.Response(200, json={"overall": {"transactionCount": 2}})

    client = GlowrootClient("http://glowroot.local", transport=httpx.MockTransport(handler))
    store = SnapshotStore(ALL_FAMILIES)
    sleeps = []
    Poller(client, store, sleep=sleeps.append).run(max_cycles=2)

    assert sleeps == [60.0, 60.0]
    assert store.get("group_info", ("ok", "OK")) == 1.0
    assert store.get("error_total_count", ("ok", "m1")) == 1.0
    assert all(p.label_values[0] == "ok" for p in store.collect_all())


def test_unencodable_member_id_in_request_is_transport_error():
    client, _ = _recording_client([])
    with pytest.raises(TransportError):
        client.fetch_members("bad\ud800", WINDOW)
