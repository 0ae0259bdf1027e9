"""
404 fingerprint oracle

One request to a path that cannot exist gives the body the target serves
for unknown paths. Later responses are compared against it to drop soft-404
pages that come back with a 200.
"""
import uuid
from dataclasses import dataclass

import requests

from pathfinder.config.logging_config import engine_logger
from pathfinder.utils.url_tools import join_url


@dataclass(frozen=True)
class Fingerprint:
    body: str = ""
    captured: bool = False

    def matches(self, body):
        """Exact equality after trimming whitespace. Never matches if the capture failed."""
        if not self.captured:
            return False
        return (body or "").strip() == self.body.strip()


EMPTY_FINGERPRINT = Fingerprint()


def random_segment():
    return f"this_path_should_not_exist_{uuid.uuid4().hex}"


def capture(base_url, session=None, timeout=10, verify=False):
    """
    GET base_url/<random segment> and keep its body.

    Network failures return EMPTY_FINGERPRINT: classification then loses
    soft-404 suppression but the run goes on.
    """
    http = session or requests
    probe_url = join_url(base_url, random_segment())
    try:
        resp = http.get(probe_url, timeout=timeout, verify=verify)
    except requests.exceptions.RequestException as e:
        engine_logger.warning(
            f"Could not fetch 404 fingerprint from {probe_url} ({e.__class__.__name__}); "
            "soft-404 suppression disabled for this run"
        )
        return EMPTY_FINGERPRINT

    engine_logger.info(
        f"404 fingerprint captured: status {resp.status_code}, {len(resp.text)} chars"
    )
    return Fingerprint(body=resp.text, captured=True)
