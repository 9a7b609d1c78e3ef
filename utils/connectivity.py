"""
utils/connectivity.py — Online/offline flag and last successful sync time.

The flag lives in memory; the last sync timestamp is persisted in the local
store under 'lastSync' and refreshed on every transition back online.
"""

import threading
from datetime import datetime

LAST_SYNC_KEY = 'lastSync'


class ConnectivityMonitor:

    def __init__(self, store):
        self.store = store
        self.offline = False
        self._lock = threading.Lock()

    def last_sync(self):
        """Persisted timestamp, or now when nothing was stored yet."""
        return self.store.get_item(LAST_SYNC_KEY) or datetime.now().isoformat(timespec='seconds')

    def status(self):
        with self._lock:
            return {'offline': self.offline, 'last_sync': self.last_sync()}

    def mark_online(self, now=None):
        stamp = (now or datetime.now()).isoformat(timespec='seconds')
        with self._lock:
            self.offline = False
            self.store.set_item(LAST_SYNC_KEY, stamp)
        return self.status()

    def mark_offline(self):
        with self._lock:
            self.offline = True
        return self.status()
