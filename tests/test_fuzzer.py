import threading
import time

import pytest
import requests

from pathfinder.fingerprint import Fingerprint, EMPTY_FINGERPRINT
from pathfinder.fuzzer import build_context, run_scan, RunContext
from pathfinder.pfconfig import ScanConfig
from pathfinder.utils.error_handler import SetupError
from pathfinder.utils.url_tools import join_url
from tests.conftest import FakeResponse, FakeSession, NOT_FOUND_BODY


def hits(results):
    return sorted((r.method, r.url) for r in results)


def test_seed_scenario_only_reports_the_real_endpoint(target):
    target.route("/api/users", body='{"items":[]}')
    config = ScanConfig(workers=4, allowed_status=frozenset({200}), timeout=5)
    ctx = build_context(target.base_url, config)
    seeds = [join_url(target.base_url, "admin"), join_url(target.base_url, "api/users")]

    results = run_scan(ctx, seeds)

    users = f"{target.base_url}/api/users"
    assert hits(results) == [("GET", users), ("HEAD", users)]
    get_hit = next(r for r in results if r.method == "GET")
    assert get_hit.status == 200
    assert get_hit.snippet == '{"items":[]}'
    assert get_hit.content_type == "application/json"

    stats = ctx.stats.snapshot()
    # 2 tasks x 2 methods x (bare + 3 payloads)
    assert stats["requests_sent"] == 16
    assert stats["tasks_processed"] == 2
    assert stats["endpoints_found"] == 2
    assert target.count("GET", "/api/users?id=1") == 1


def test_soft_404_pages_are_suppressed(target):
    # unknown paths answer 200 with the same page
    target.default = (200, "text/plain", NOT_FOUND_BODY)
    target.route("/api/status", content_type="text/plain", body="ok")
    config = ScanConfig(workers=2, methods=("GET",), timeout=5)
    ctx = build_context(target.base_url, config)

    results = run_scan(ctx, [join_url(target.base_url, p) for p in ("admin", "backup", "api/status")])

    assert hits(results) == [("GET", f"{target.base_url}/api/status")]


def test_discovered_path_is_claimed_once_and_processed(target):
    target.route("/api/users", body='{"next": "/api/users/1/profile", "again": "/api/users/1/profile"}')
    target.route("/api/users/1/profile", body='{"name": "alice", "self": "/api/users"}')
    config = ScanConfig(workers=4, allowed_status=frozenset({200}), timeout=5)
    ctx = build_context(target.base_url, config)

    results = run_scan(ctx, [join_url(target.base_url, "api/users")])

    profile = f"{target.base_url}/api/users/1/profile"
    assert ("GET", profile) in hits(results)
    assert target.count("GET", "/api/users/1/profile") == 1
    # "/api/users" points back at the seed and must not be re-queued
    assert target.count("GET", "/api/users") == 1
    stats = ctx.stats.snapshot()
    assert stats["tasks_discovered"] == 1
    assert stats["tasks_processed"] == 2


def test_discovery_equal_to_a_seed_is_not_requeued(target):
    target.route("/api/a", body='"/api/b"')
    target.route("/api/b", body='"/api/a"')
    config = ScanConfig(workers=3, methods=("GET",), payloads=(), timeout=5)
    ctx = build_context(target.base_url, config)

    run_scan(ctx, [join_url(target.base_url, "/api/a"), join_url(target.base_url, "api/b")])

    assert target.count("GET", "/api/a") == 1
    assert target.count("GET", "/api/b") == 1
    assert ctx.stats["tasks_discovered"] == 0


def test_discovery_chain_runs_until_exhausted(target):
    # /api/n0 -> /api/n1 -> ... -> /api/n9, each only known from its parent
    for i in range(10):
        nxt = f'"/api/n{i + 1}"' if i < 9 else "{}"
        target.route(f"/api/n{i}", body=nxt)
    config = ScanConfig(workers=5, methods=("GET",), payloads=(), timeout=5)
    ctx = build_context(target.base_url, config)

    results = run_scan(ctx, [join_url(target.base_url, "api/n0")])

    assert len(results) == 10
    assert ctx.stats["tasks_processed"] == 10
    assert ctx.queue.pending.value == 0


def test_non_script_hits_are_not_mined(target):
    target.route("/notes", content_type="text/plain", body="see /api/secret")
    config = ScanConfig(workers=1, methods=("GET",), payloads=(), timeout=5)
    ctx = build_context(target.base_url, config)

    run_scan(ctx, [join_url(target.base_url, "notes")])

    assert target.count("GET", "/api/secret") == 0


def test_small_queue_applies_backpressure_without_losing_seeds():
    session = FakeSession(lambda method, url: FakeResponse(404, "nope", "text/plain"))
    config = ScanConfig(workers=3, methods=("GET",), payloads=(), queue_size=2)
    ctx = RunContext("http://x.test", config, session, Fingerprint("nope", captured=True))
    seeds = [f"http://x.test/p{i}" for i in range(200)]

    results = run_scan(ctx, iter(seeds))

    assert results == []
    assert ctx.stats["tasks_seeded"] == 200
    assert ctx.stats["tasks_processed"] == 200
    assert sorted(url for _, url in session.calls) == sorted(seeds)


def test_duplicate_seeds_become_one_task():
    session = FakeSession(lambda method, url: FakeResponse(404, "", "text/plain"))
    config = ScanConfig(workers=2, methods=("GET",), payloads=())
    ctx = RunContext("http://x.test", config, session, EMPTY_FINGERPRINT)

    run_scan(ctx, ["http://x.test/a", "http://x.test/a", "http://x.test/b"])

    assert ctx.stats["tasks_seeded"] == 2
    assert len(session.calls) == 2


def test_variants_are_tried_in_fixed_order():
    session = FakeSession(lambda method, url: FakeResponse(404, "", "text/plain"))
    config = ScanConfig(workers=1)
    ctx = RunContext("http://x.test", config, session, EMPTY_FINGERPRINT)

    run_scan(ctx, ["http://x.test/a"])

    assert session.calls == [
        ("GET", "http://x.test/a"),
        ("GET", "http://x.test/a?id=1"),
        ("GET", "http://x.test/a?user=admin"),
        ("GET", "http://x.test/a?q=test"),
        ("HEAD", "http://x.test/a"),
        ("HEAD", "http://x.test/a?id=1"),
        ("HEAD", "http://x.test/a?user=admin"),
        ("HEAD", "http://x.test/a?q=test"),
    ]


def test_request_errors_are_misses_and_never_retried():
    def flaky(method, url):
        if url.endswith("/down"):
            raise requests.exceptions.ConnectTimeout("timed out")
        return FakeResponse(200, '{"ok": true}')

    session = FakeSession(flaky)
    config = ScanConfig(workers=2, methods=("GET",), payloads=())
    ctx = RunContext("http://x.test", config, session, EMPTY_FINGERPRINT)

    results = run_scan(ctx, ["http://x.test/down", "http://x.test/up"])

    assert hits(results) == [("GET", "http://x.test/up")]
    assert ctx.stats["request_errors"] == 1
    assert session.calls.count(("GET", "http://x.test/down")) == 1


def test_unexpected_error_still_completes_the_task():
    def broken(method, url):
        if url.endswith("/bad"):
            raise RuntimeError("parser exploded")
        return FakeResponse(404, "", "text/plain")

    config = ScanConfig(workers=1, methods=("GET",), payloads=())
    ctx = RunContext("http://x.test", config, FakeSession(broken), EMPTY_FINGERPRINT)

    run_scan(ctx, ["http://x.test/bad", "http://x.test/good"])

    assert ctx.stats["tasks_processed"] == 2
    assert ctx.queue.pending.value == 0


def test_hit_callback_receives_results():
    seen = []
    session = FakeSession(lambda method, url: FakeResponse(201, "created"))
    config = ScanConfig(workers=1, methods=("GET",), payloads=())
    ctx = RunContext("http://x.test", config, session, EMPTY_FINGERPRINT)
    ctx.on_hit = seen.append

    run_scan(ctx, ["http://x.test/items"])

    assert [(r.url, r.status) for r in seen] == [("http://x.test/items", 201)]


def test_cancel_interrupts_the_delay_and_stops_the_pool():
    session = FakeSession(lambda method, url: FakeResponse(404, "", "text/plain"))
    config = ScanConfig(workers=1, delay_ms=60000)
    ctx = RunContext("http://x.test", config, session, EMPTY_FINGERPRINT)
    seeds = [f"http://x.test/p{i}" for i in range(50)]
    out = []

    runner = threading.Thread(target=lambda: out.append(run_scan(ctx, seeds)), daemon=True)
    runner.start()
    deadline = time.time() + 5
    while not session.calls and time.time() < deadline:
        time.sleep(0.01)
    ctx.cancel()
    runner.join(timeout=5)

    assert not runner.is_alive()
    assert ctx.cancelled
    assert out == [[]]
    assert len(session.calls) == 1


def test_sink_is_sealed_after_the_run():
    session = FakeSession(lambda method, url: FakeResponse(404, "", "text/plain"))
    ctx = RunContext("http://x.test", ScanConfig(workers=1), session, EMPTY_FINGERPRINT)
    run_scan(ctx, [])
    with pytest.raises(RuntimeError):
        ctx.sink.add(object())


def test_build_context_rejects_bad_targets():
    with pytest.raises(SetupError):
        build_context("not a url", ScanConfig())
    with pytest.raises(SetupError):
        build_context("ftp://x.test", ScanConfig())


def test_build_context_rejects_whitespace_before_any_request():
    session = FakeSession(lambda method, url: FakeResponse(404, "missing", "text/plain"))
    for target in ("http://x.test/\n", "http://x.test ", " http://x.test"):
        with pytest.raises(SetupError):
            build_context(target, ScanConfig(), session=session)
    assert session.calls == []


def test_build_context_captures_fingerprint_with_its_session():
    session = FakeSession(lambda method, url: FakeResponse(404, "missing", "text/plain"))
    ctx = build_context("http://x.test", ScanConfig(), session=session)
    assert ctx.fingerprint == Fingerprint("missing", captured=True)
    assert ctx.session is session
