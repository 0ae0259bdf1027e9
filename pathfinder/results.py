import threading
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class Result:
    url: str
    method: str
    status: int
    snippet: str
    content_type: str = ""

    def to_dict(self):
        return asdict(self)

    def row(self):
        return [self.url, self.method, str(self.status), self.snippet]


TABLE_HEADER = ["URL", "Method", "Status", "Response Snippet"]


class ResultSink:
    """
    Append-only store of confirmed hits, shared by all workers.
    finalize() seals it; adding afterwards is a bug in the caller.
    """

    def __init__(self):
        self._results = []
        self._lock = threading.Lock()
        self._sealed = False

    def add(self, result):
        with self._lock:
            if self._sealed:
                raise RuntimeError("result sink already finalized")
            self._results.append(result)

    def __len__(self):
        with self._lock:
            return len(self._results)

    def rows(self):
        """Rendering-ready projection: URL, Method, Status, Snippet"""
        with self._lock:
            return [r.row() for r in self._results]

    def finalize(self):
        with self._lock:
            self._sealed = True
            return list(self._results)
