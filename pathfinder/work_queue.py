"""
Self-feeding task queue with pending-work termination

Workers are both consumers and producers (discovered paths), so the queue is
never "closed" by the seeder. Instead every enqueue bumps a pending counter
and every finished task drops it; a watcher thread declares END_OF_WORK once
the counter hits zero, both buffers are empty and seeding is over.

Seed tasks go through a bounded buffer (the seeder blocks while it is full).
Discovered tasks go to an unbounded backlog that dequeue() drains first, so
a worker never blocks on its own queue.
"""
import threading
from collections import deque

from pathfinder.config.logging_config import engine_logger


class _EndOfWork:
    def __repr__(self):
        return "END_OF_WORK"


END_OF_WORK = _EndOfWork()


class PendingCounter:
    """Queued + in-flight tasks. Shares the queue's condition variable."""

    def __init__(self, cond):
        self._cond = cond
        self._value = 0

    @property
    def value(self):
        with self._cond:
            return self._value

    def increment(self):
        with self._cond:
            self._value += 1

    def decrement(self):
        with self._cond:
            if self._value <= 0:
                raise RuntimeError("pending counter decremented below zero")
            self._value -= 1
            if self._value == 0:
                self._cond.notify_all()


class TaskQueue:

    def __init__(self, maxsize=1000):
        if maxsize <= 0:
            raise ValueError("maxsize must be > 0")
        self.maxsize = maxsize
        self._cond = threading.Condition()
        self._seeds = deque()
        self._discovered = deque()
        self.pending = PendingCounter(self._cond)
        self.cancelled = threading.Event()
        self._seeding = True
        self._finished = False
        self._watcher = None

    # -- producers -------------------------------------------------------

    def enqueue(self, task):
        """
        Seeder side. Blocks while the seed buffer is full.
        Returns False if the run already ended (cancelled).
        """
        with self._cond:
            while len(self._seeds) >= self.maxsize and not self._finished:
                self._cond.wait()
            if self._finished:
                return False
            self.pending.increment()
            self._seeds.append(task)
            self._cond.notify_all()
            return True

    def enqueue_discovered(self, task):
        """Worker side. Never blocks; must be called before the parent task_done()."""
        with self._cond:
            if self._finished:
                return False
            self.pending.increment()
            self._discovered.append(task)
            self._cond.notify_all()
            return True

    def seeding_done(self):
        """The seeder will not enqueue anything else."""
        with self._cond:
            self._seeding = False
            self._cond.notify_all()

    # -- consumers -------------------------------------------------------

    def dequeue(self):
        """Next task, or END_OF_WORK once the run is over."""
        with self._cond:
            while True:
                if self._finished:
                    return END_OF_WORK
                if self._discovered:
                    return self._discovered.popleft()
                if self._seeds:
                    task = self._seeds.popleft()
                    # room for a blocked seeder
                    self._cond.notify_all()
                    return task
                self._cond.wait()

    def task_done(self):
        self.pending.decrement()

    # -- lifecycle -------------------------------------------------------

    def cancel(self):
        """Operator abort: wake everybody, hand out END_OF_WORK from now on."""
        with self._cond:
            self.cancelled.set()
            self._finished = True
            self._cond.notify_all()

    @property
    def finished(self):
        with self._cond:
            return self._finished

    def qsize(self):
        with self._cond:
            return len(self._seeds) + len(self._discovered)

    def _is_quiescent(self):
        return (self.pending.value == 0 and not self._seeding
                and not self._seeds and not self._discovered)

    def _watch(self):
        with self._cond:
            while not self._finished and not self._is_quiescent():
                self._cond.wait()
            self._finished = True
            self._cond.notify_all()
        if self.cancelled.is_set():
            engine_logger.info("Run cancelled, workers released")
        else:
            engine_logger.debug("No pending work left, workers released")

    def start_watcher(self):
        if self._watcher is None:
            self._watcher = threading.Thread(
                target=self._watch, name="termination-watcher", daemon=True
            )
            self._watcher.start()
        return self._watcher

    def wait_finished(self, timeout=None):
        """Block until the watcher has declared the end of the run."""
        if self._watcher is None:
            raise RuntimeError("watcher not started")
        self._watcher.join(timeout)
        return not self._watcher.is_alive()
