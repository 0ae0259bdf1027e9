"""
pathFinder engine - concurrent fuzzing with a self-expanding frontier

Seed URLs are claimed through the frontier and queued. Each worker takes a
URL, tries every (method x payload) variant, keeps the hits and feeds any
API paths found in JSON/JS hits back into the queue. The run ends when the
termination watcher sees no pending work left.
"""
import threading
import time

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning

from pathfinder import fingerprint as fingerprint_oracle
from pathfinder.classifier import ResponseClassifier, PathExtractor
from pathfinder.config.logging_config import engine_logger
from pathfinder.frontier import FrontierSet
from pathfinder.results import ResultSink
from pathfinder.utils.decorators import log_execution, validate_target_url
from pathfinder.utils.error_handler import log_error_with_context
from pathfinder.work_queue import TaskQueue, END_OF_WORK

# Disable SSL warnings - targets routinely run self-signed certs
urllib3.disable_warnings(InsecureRequestWarning)


class RunStats:
    """Thread-safe counters for one run"""

    FIELDS = (
        'files_scanned',
        'tasks_seeded',
        'tasks_discovered',
        'tasks_processed',
        'requests_sent',
        'request_errors',
        'endpoints_found',
    )

    def __init__(self):
        self._counts = dict.fromkeys(self.FIELDS, 0)
        self._lock = threading.Lock()
        self.start_time = time.time()
        self.end_time = None

    def incr(self, name, amount=1):
        with self._lock:
            self._counts[name] += amount

    def set(self, name, value):
        with self._lock:
            self._counts[name] = value

    def __getitem__(self, name):
        with self._lock:
            return self._counts[name]

    def snapshot(self):
        with self._lock:
            data = dict(self._counts)
        data['elapsed'] = (self.end_time or time.time()) - self.start_time
        return data


class RunContext:
    """Everything one run shares between the seeder, the workers and the watcher."""

    def __init__(self, base_url, config, session, fingerprint):
        self.base_url = base_url.rstrip('/')
        self.config = config
        self.session = session
        self.fingerprint = fingerprint
        self.frontier = FrontierSet(self.base_url)
        self.queue = TaskQueue(config.queue_size)
        self.sink = ResultSink()
        self.stats = RunStats()
        self.classifier = ResponseClassifier(
            fingerprint, config.allowed_status, config.snippet_length
        )
        self.extractor = PathExtractor(config.api_prefix, config.discovery_content_types)
        # Optional hooks for the CLI: on_hit(result), on_progress(ctx)
        self.on_hit = None
        self.on_progress = None

    def cancel(self):
        self.queue.cancel()

    @property
    def cancelled(self):
        return self.queue.cancelled.is_set()


def build_session(config):
    """Session with one pooled connection per worker and no transport retries"""
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=config.workers,
        pool_maxsize=config.workers,
        max_retries=0,
    )
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    session.headers.update(config.headers)
    session.cookies.update(config.cookies)
    return session


@validate_target_url
def build_context(base_url, config, session=None, fingerprint=None):
    """Validate the target, open the session and capture the 404 fingerprint."""
    session = session or build_session(config)
    if fingerprint is None:
        fingerprint = fingerprint_oracle.capture(
            base_url, session=session, timeout=config.timeout, verify=config.verify_ssl
        )
    return RunContext(base_url, config, session, fingerprint)


def discover(ctx, body):
    """Claim every new API path found in body and queue it as a task."""
    added = 0
    for path in ctx.extractor.extract(body):
        url = ctx.frontier.normalize(path)
        if ctx.frontier.try_claim(url) and ctx.queue.enqueue_discovered(url):
            engine_logger.debug(f"Discovered {url}")
            added += 1
    if added:
        ctx.stats.incr('tasks_discovered', added)
    return added


def probe(ctx, method, url):
    """One request. Returns the Result on a hit, None otherwise."""
    ctx.stats.incr('requests_sent')
    try:
        response = ctx.session.request(
            method,
            url,
            timeout=ctx.config.timeout,
            verify=ctx.config.verify_ssl,
            allow_redirects=True,
        )
    except requests.exceptions.RequestException as e:
        ctx.stats.incr('request_errors')
        engine_logger.debug(f"{method} {url} failed: {e.__class__.__name__}: {e}")
        return None

    content_type = response.headers.get('Content-Type', '')
    body = response.text
    if not ctx.classifier.is_hit(response.status_code, content_type, body):
        return None

    result = ctx.classifier.build_result(url, method, response.status_code, content_type, body)
    ctx.stats.incr('endpoints_found')
    ctx.sink.add(result)
    engine_logger.debug(f"[FOUND] {url} {method} {response.status_code}")
    if ctx.on_hit:
        ctx.on_hit(result)

    if ctx.extractor.applies_to(content_type):
        discover(ctx, body)
    return result


def process_task(ctx, url):
    """Every method x variant of one URL, in a fixed order."""
    for method in ctx.config.methods:
        for variant in ctx.config.variants(url):
            if ctx.cancelled:
                return
            probe(ctx, method, variant)
            if ctx.on_progress:
                ctx.on_progress(ctx)
            # ANTI-RATE LIMITING DELAY (returns early on cancel)
            if ctx.config.delay_ms > 0:
                ctx.queue.cancelled.wait(ctx.config.delay)


def worker(ctx):
    """
    Function executed by each thread. Exits only on END_OF_WORK; a task is
    always marked done, even if processing it blew up.
    """
    while True:
        task = ctx.queue.dequeue()
        if task is END_OF_WORK:
            break
        try:
            process_task(ctx, task)
        except Exception as e:
            log_error_with_context(e, {'task': task}, log=engine_logger)
        finally:
            ctx.stats.incr('tasks_processed')
            ctx.queue.task_done()


def seed_queue(ctx, seed_urls):
    """Claim and queue the seed URLs, then tell the queue seeding is over."""
    try:
        for url in seed_urls:
            if ctx.cancelled:
                break
            url = ctx.frontier.normalize(url)
            if not ctx.frontier.try_claim(url):
                continue
            if not ctx.queue.enqueue(url):
                break
            ctx.stats.incr('tasks_seeded')
    finally:
        ctx.queue.seeding_done()


@log_execution(log_args=False, log_time=True)
def run_scan(ctx, seed_urls):
    """
    Run the worker pool to completion and return the finalized results.

    seed_urls may be any iterable; it is consumed by a seeder thread so a
    bounded queue can apply backpressure on large seed lists.
    """
    engine_logger.info(
        f"Starting {ctx.config.workers} workers against {ctx.base_url} "
        f"({len(ctx.config.methods)} methods x {len(ctx.config.payloads) + 1} variants)"
    )
    ctx.stats.start_time = time.time()
    ctx.queue.start_watcher()

    threads = []
    for i in range(ctx.config.workers):
        thread = threading.Thread(target=worker, args=(ctx,), name=f"worker-{i}")
        thread.daemon = True
        thread.start()
        threads.append(thread)

    seeder = threading.Thread(target=seed_queue, args=(ctx, seed_urls), name="seeder")
    seeder.daemon = True
    seeder.start()

    seeder.join()
    for thread in threads:
        thread.join()
    ctx.stats.end_time = time.time()

    results = ctx.sink.finalize()
    stats = ctx.stats.snapshot()
    engine_logger.info(
        f"Scan finished: {stats['tasks_processed']} tasks, {stats['requests_sent']} requests, "
        f"{stats['endpoints_found']} endpoints, {stats['request_errors']} errors"
    )
    return results
