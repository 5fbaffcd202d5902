import time
from threading import Lock
from typing import Any, Dict, Optional, Tuple


class TTLCache:
    """
    Small in-process key/value store whose entries expire.

    Holds the last M-Pesa account balance pushed by the gateway until the
    admin dashboard polls for it.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = Lock()

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._data[key] = (self._clock() + ttl_seconds, value)

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


balance_cache = TTLCache()
