"""
URL helpers shared by the seeder, the frontier and the CLI
"""
import re
from urllib.parse import urlparse

import requests

from pathfinder.utils.error_handler import ValidationError

UNSAFE_FILENAME_RE = re.compile(r'[^a-zA-Z0-9_\-\.]')


def join_url(base_url, path):
    """
    Normalized join used everywhere a Task is built:
    'http://x.test/' + '/foo' == 'http://x.test' + 'foo'
    """
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def ensure_scheme(raw_url, timeout=5, session=None):
    """
    Return raw_url with a scheme. Schemeless targets are probed over HTTPS
    first and fall back to plain HTTP when HTTPS is unreachable or errors.
    """
    raw_url = raw_url.strip()
    if raw_url.startswith(('http://', 'https://')):
        return raw_url

    http = session or requests
    try_url = f"https://{raw_url}"
    try:
        resp = http.head(try_url, timeout=timeout, verify=False)
        if resp.status_code < 400:
            return try_url
    except requests.exceptions.RequestException:
        pass

    return f"http://{raw_url}"


def sanitize_filename(raw_url):
    """'https://x.test/a/b' -> 'x.test_a_b', 'https://x.test/' -> 'x.test_', 'https://x.test' -> 'x.testroot'"""
    try:
        parsed = urlparse(raw_url)
    except ValueError:
        parsed = None

    if parsed is None or not parsed.hostname:
        return UNSAFE_FILENAME_RE.sub('', raw_url.replace('://', '_').replace('/', '_'))

    path = parsed.path.replace('/', '_') or 'root'
    return UNSAFE_FILENAME_RE.sub('', parsed.hostname + path)


def parse_cookies(cookie_string):
    """
    Convert cookie string to dict for requests
    Example: 'session=abc123; user=admin' -> {'session': 'abc123', 'user': 'admin'}
    """
    if not cookie_string:
        return {}

    cookies = {}
    for cookie in cookie_string.split(';'):
        cookie = cookie.strip()
        if '=' in cookie:
            key, value = cookie.split('=', 1)
            cookies[key.strip()] = value
    return cookies


def parse_headers(header_list):
    """['X-Api-Key: abc', 'Accept: */*'] -> {'X-Api-Key': 'abc', 'Accept': '*/*'}"""
    headers = {}
    for raw in header_list or []:
        if ':' not in raw:
            raise ValidationError(f"Header must look like 'Name: value', got '{raw}'")
        key, value = raw.split(':', 1)
        headers[key.strip()] = value.strip()
    return headers
