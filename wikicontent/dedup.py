import asyncio
from typing import Any, Awaitable, Callable, Dict, List

from wikicontent.logging_setup import logger


class RequestDeduplicator:
    """
    Collapses concurrent requests for the same key onto a single in-flight task.

    While a task for a key is unsettled every caller receives the same task
    object. The registration is dropped inside the task itself, so by the time
    any awaiter observes the result (or the exception) a new call for the same
    key starts a fresh request.
    """
    def __init__(self):
        self._pending: Dict[str, asyncio.Task] = {}

    def dedupe(self, key: str, factory: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        existing = self._pending.get(key)
        if existing is not None:
            logger.debug("Joining in-flight request", extra={"key": key})
            return existing

        async def _run() -> Any:
            try:
                return await factory()
            finally:
                # Only unregister ourselves; clear() may have made room for a newer task.
                if self._pending.get(key) is asyncio.current_task():
                    del self._pending[key]

        task = asyncio.get_running_loop().create_task(_run(), name=f"dedupe:{key}")
        self._pending[key] = task
        return task

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def pending_keys(self) -> List[str]:
        return list(self._pending.keys())

    def clear(self, key: str) -> None:
        """Forgets the in-flight task for a key without cancelling it."""
        self._pending.pop(key, None)

    def clear_all(self) -> None:
        self._pending.clear()
