"""
Hit/miss decision and path discovery for fuzzed responses
"""
import re

from pathfinder.results import Result


class ResponseClassifier:
    """
    A response is a hit when:
      - its status is in the allowed set
      - its content-type is not HTML
      - its body is not the 404 fingerprint
    """

    def __init__(self, fingerprint, allowed_status, snippet_length=100):
        self.fingerprint = fingerprint
        self.allowed_status = frozenset(allowed_status)
        self.snippet_length = snippet_length

    def is_hit(self, status, content_type, body):
        if status not in self.allowed_status:
            return False
        if 'html' in (content_type or '').lower():
            return False
        return not self.fingerprint.matches(body)

    def snippet(self, body):
        body = body or ''
        if len(body) > self.snippet_length:
            return body[:self.snippet_length] + '...'
        return body

    def build_result(self, url, method, status, content_type, body):
        return Result(
            url=url,
            method=method,
            status=status,
            snippet=self.snippet(body),
            content_type=content_type or '',
        )


class PathExtractor:
    """Pulls API-looking paths ('/api/users/1') out of JSON and script bodies."""

    def __init__(self, prefix="/api/", content_types=("javascript", "json")):
        self.prefix = prefix
        self.content_types = tuple(ct.lower() for ct in content_types)
        self.pattern = re.compile(rf'({re.escape(prefix)}[\w/-]+)', re.IGNORECASE | re.ASCII)

    def applies_to(self, content_type):
        content_type = (content_type or '').lower()
        return any(ct in content_type for ct in self.content_types)

    def extract(self, body):
        """Unique matches in order of first appearance."""
        found = []
        seen = set()
        for match in self.pattern.findall(body or ''):
            path = match.strip()
            if path and path not in seen:
                seen.add(path)
                found.append(path)
        return found
