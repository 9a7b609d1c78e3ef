"""
utils/notifications.py — Transient notifications collected during a request.

Repositories and controllers push (category, message) pairs; routes return
them with the JSON response. Categories follow flash(): success, error,
warning, info. Safe to push from the loader's worker threads.
"""

import threading


class Notifier:
    """Thread-safe list of pending notifications."""

    def __init__(self):
        self._lock = threading.Lock()
        self._messages = []

    def __call__(self, category, message):
        self.push(category, message)

    def push(self, category, message):
        with self._lock:
            self._messages.append({'category': category, 'message': message})

    def drain(self):
        """Return and clear all pending notifications."""
        with self._lock:
            messages, self._messages = self._messages, []
        return messages

    @property
    def messages(self):
        with self._lock:
            return list(self._messages)
