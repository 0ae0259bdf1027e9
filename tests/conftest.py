import os
import tempfile
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

# Keep test runs from writing into the user's log directory
os.environ.setdefault("PATHFINDER_LOG_DIR", tempfile.mkdtemp(prefix="pathfinder-logs-"))

import pytest  # noqa: E402

NOT_FOUND_BODY = "<not found> nothing to see here\n"


class FakeTarget:
    """Routes keyed by the raw request path (query string included)."""

    def __init__(self):
        self.routes = {}
        self.default = (404, "text/plain", NOT_FOUND_BODY)
        self.requests = []
        self.lock = threading.Lock()
        self.base_url = None

    def route(self, path, status=200, content_type="application/json", body=""):
        self.routes[path] = (status, content_type, body)

    def count(self, method, path):
        with self.lock:
            return sum(1 for m, p in self.requests if m == method and p == path)


def make_handler(target):
    class Handler(BaseHTTPRequestHandler):

        def _respond(self, send_body):
            with target.lock:
                target.requests.append((self.command, self.path))
            status, content_type, body = target.routes.get(self.path, target.default)
            payload = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            if send_body:
                self.wfile.write(payload)

        def do_GET(self):
            self._respond(True)

        def do_HEAD(self):
            self._respond(False)

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture
def target():
    fake = FakeTarget()
    server = ThreadingHTTPServer(("127.0.0.1", 0), make_handler(fake))
    server.daemon_threads = True
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    fake.base_url = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        yield fake
    finally:
        server.shutdown()
        server.server_close()


class FakeResponse:
    def __init__(self, status=200, body="", content_type="application/json"):
        self.status_code = status
        self.text = body
        self.headers = {"Content-Type": content_type}


class FakeSession:
    """Stands in for requests.Session; handler(method, url) returns a FakeResponse or raises."""

    def __init__(self, handler):
        self.handler = handler
        self.calls = []
        self.lock = threading.Lock()

    def request(self, method, url, **kwargs):
        with self.lock:
            self.calls.append((method, url))
        return self.handler(method, url)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def head(self, url, **kwargs):
        return self.request("HEAD", url, **kwargs)


@pytest.fixture
def seed_dir(tmp_path):
    def _make(files):
        root = tmp_path / "web-content"
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        root.mkdir(exist_ok=True)
        return str(root)
    return _make
