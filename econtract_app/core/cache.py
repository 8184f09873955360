from collections import OrderedDict
from threading import Lock
import time


class TTLCache:
    """Small LRU cache whose entries expire after ``ttl_s`` seconds."""

    def __init__(self, max_items=256, ttl_s=3600, clock=time.monotonic):
        self.max = max_items
        self.ttl = ttl_s
        self.clock = clock
        self._data = OrderedDict()
        self._lock = Lock()

    def _purge(self):
        now = self.clock()
        keys = [k for k, (_, ts) in self._data.items() if now - ts > self.ttl]
        for k in keys:
            self._data.pop(k, None)
        # LRU trim
        while len(self._data) > self.max:
            self._data.popitem(last=False)

    def get(self, key):
        with self._lock:
            self._purge()
            if key not in self._data:
                return None
            self._data.move_to_end(key)
            return self._data[key][0]

    def set(self, key, value):
        with self._lock:
            self._data.pop(key, None)
            self._data[key] = (value, self.clock())
            self._purge()

    def clear(self):
        with self._lock:
            self._data.clear()

    def __len__(self):
        with self._lock:
            return len(self._data)
