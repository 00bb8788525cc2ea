import threading
from typing import Dict, Any, List, Optional

class ContentCache:
    """
    A thread-safe key/value store for parsed content collections.

    Entries live until invalidated or cleared; there is no eviction. The
    content loader is the only writer, request handlers only read.
    """
    def __init__(self):
        self._entries: Dict[str, Any] = {}
        self.lock = threading.Lock()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        with self.lock:
            return self._entries.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Stores a value, replacing any previous value under the same key."""
        with self.lock:
            self._entries[key] = value

    def has(self, key: str) -> bool:
        with self.lock:
            return key in self._entries

    def invalidate(self, key: str) -> None:
        with self.lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def keys(self) -> List[str]:
        with self.lock:
            return list(self._entries.keys())

    def size(self) -> int:
        with self.lock:
            return len(self._entries)
