import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple

from pathfinder.utils.url_tools import sanitize_filename

# Seed wordlists (directory tree of .txt files)
DEFAULT_SEED_DIR = "web-content"

# Output
RESULTS_DIR = os.environ.get("PATHFINDER_RESULTS_DIR", os.getcwd())
OUTPUT_FORMATS = ("json", "txt")

# Fuzzing matrix
DEFAULT_METHODS = ("GET", "HEAD")
DEFAULT_PAYLOADS = ("?id=1", "?user=admin", "?q=test")
DEFAULT_ALLOWED_STATUS = frozenset({200, 201, 204})

# Engine
DEFAULT_WORKERS = 20
DEFAULT_DELAY_MS = 0
DEFAULT_TIMEOUT = 10
DEFAULT_QUEUE_SIZE = 1000
DEFAULT_SNIPPET_LENGTH = 100
API_PATH_PREFIX = "/api/"
DISCOVERY_CONTENT_TYPES = ("javascript", "json")


@dataclass(frozen=True)
class ScanConfig:
    """Per-run settings. Methods, payloads and statuses are injectable."""
    workers: int = DEFAULT_WORKERS
    delay_ms: int = DEFAULT_DELAY_MS
    timeout: float = DEFAULT_TIMEOUT
    methods: Tuple[str, ...] = DEFAULT_METHODS
    payloads: Tuple[str, ...] = DEFAULT_PAYLOADS
    allowed_status: FrozenSet[int] = DEFAULT_ALLOWED_STATUS
    queue_size: int = DEFAULT_QUEUE_SIZE
    snippet_length: int = DEFAULT_SNIPPET_LENGTH
    api_prefix: str = API_PATH_PREFIX
    discovery_content_types: Tuple[str, ...] = DISCOVERY_CONTENT_TYPES
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = False

    def __post_init__(self):
        if self.workers <= 0:
            raise ValueError("workers must be > 0")
        if self.delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        if self.queue_size <= 0:
            raise ValueError("queue_size must be > 0")
        if not self.methods:
            raise ValueError("at least one HTTP method is required")

    @property
    def delay(self):
        """Inter-request delay in seconds"""
        return self.delay_ms / 1000.0

    def variants(self, url):
        """Bare URL first, then one variant per payload"""
        return [url] + [f"{url}{payload}" for payload in self.payloads]


def parse_code_list(s):
    """Converts '200,201-204' -> {200, 201, 202, 203, 204}"""
    codes = set()
    for piece in s.split(','):
        piece = piece.strip()
        if not piece:
            continue
        if '-' in piece:
            start, end = map(int, piece.split('-', 1))
            codes.update(range(start, end + 1))
        else:
            codes.add(int(piece))
    return frozenset(codes)


def get_output_path(base_url, fmt="json", results_dir=None):
    """Default output file for a target, e.g. x.test_root_found_apis.json"""
    ext = "txt" if fmt == "txt" else "json"
    filename = f"{sanitize_filename(base_url)}_found_apis.{ext}"
    return os.path.join(results_dir or RESULTS_DIR, filename)
