"""
controllers/base.py — Load/filter/mutate cycle shared by every screen.

A controller walks idle -> loading -> ready | failed. load() runs the
screen's fetches concurrently and joins them all: one exception fails the
whole load. Each load gets a LoadToken; unmount() or a newer load cancels
it, and a cancelled load never commits its results.

Mutations validate first, call the repository, then reload everything.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from errors import PersistenceError, ValidationError
from utils.notifications import Notifier

logger = logging.getLogger(__name__)

IDLE = 'idle'
LOADING = 'loading'
READY = 'ready'
FAILED = 'failed'


class LoadToken:
    """Cancellation flag for one load."""

    def __init__(self):
        self._cancelled = threading.Event()

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()


def farm_name(farms, farm_id):
    farm = next((f for f in farms if f.id == farm_id), None)
    return farm.name if farm else "Unknown Farm"


class ScreenController:
    """Base class. Subclasses implement fetchers() and their filters."""

    error_message = "Failed to load data"
    max_workers = 4

    def __init__(self, repositories, notifier=None, now=None):
        self.notifier = notifier if notifier is not None else Notifier()
        self.repos = repositories.bind(self.notifier)
        self.now = now
        self.state = IDLE
        self.error = None
        self.data = {}
        self.filters = {}
        self._token = None
        self._token_lock = threading.Lock()

    def current_time(self):
        return self.now or datetime.now()

    def fetchers(self):
        """Mapping of result name -> zero-argument callable."""
        raise NotImplementedError

    # ========================================
    # Loading
    # ========================================

    def load(self):
        """Fetch everything the screen needs. Returns True when ready."""
        token = LoadToken()
        with self._token_lock:
            if self._token is not None:
                self._token.cancel()
            self._token = token

        self.state = LOADING
        self.error = None
        jobs = self.fetchers()

        try:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(jobs))) as pool:
                futures = {name: pool.submit(fn) for name, fn in jobs.items()}
                results = {name: future.result() for name, future in futures.items()}
        except Exception as e:
            if token.cancelled:
                return False
            logger.exception("%s load failed: %s", type(self).__name__, e)
            self.state = FAILED
            self.error = self.error_message
            return False

        if token.cancelled:
            logger.info("%s load cancelled, results discarded", type(self).__name__)
            return False

        self.data = results
        self.state = READY
        return True

    def retry(self):
        return self.load()

    def unmount(self):
        with self._token_lock:
            if self._token is not None:
                self._token.cancel()
            self._token = None

    def ensure_loaded(self):
        if self.state != READY:
            self.load()

    # ========================================
    # Filtering
    # ========================================

    def set_filters(self, **criteria):
        """Replace filter criteria; empty values mean 'all'."""
        self.filters = {k: v for k, v in criteria.items() if v not in (None, '')}

    def clear_filters(self):
        self.filters = {}

    # ========================================
    # Mutations
    # ========================================

    def _validated(self, validator, fields, *args):
        cleaned, errors = validator(fields, *args)
        if errors:
            raise ValidationError(errors)
        return cleaned

    def _mutate(self, operation, success_message, failure_message):
        """Run a repository mutation, notify, then reload the screen."""
        try:
            result = operation()
        except PersistenceError as e:
            logger.error("%s: %s", failure_message, e)
            self.notifier.push('error', failure_message)
            raise
        self.notifier.push('success', success_message)
        self.load()
        return result

    def snapshot(self):
        """Common part of the JSON view."""
        return {'state': self.state, 'error': self.error, 'filters': dict(self.filters)}
