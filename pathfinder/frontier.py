import threading

from pathfinder.utils.url_tools import join_url


class FrontierSet:
    """
    Run-wide set of normalized URLs already turned into tasks.

    try_claim() is the only way in: membership test and insert happen under
    one lock, so concurrent discoverers can never enqueue the same URL twice.
    """

    def __init__(self, base_url):
        self.base_url = base_url.rstrip('/')
        self._seen = set()
        self._lock = threading.Lock()

    def normalize(self, path_or_url):
        """Paths are joined to the base URL; absolute URLs are kept as given."""
        if path_or_url.startswith(('http://', 'https://')):
            return path_or_url
        return join_url(self.base_url, path_or_url)

    def try_claim(self, path_or_url):
        """True the first time a normalized URL is seen, False afterwards."""
        url = self.normalize(path_or_url)
        with self._lock:
            if url in self._seen:
                return False
            self._seen.add(url)
        return True

    def __contains__(self, path_or_url):
        url = self.normalize(path_or_url)
        with self._lock:
            return url in self._seen

    def __len__(self):
        with self._lock:
            return len(self._seen)
