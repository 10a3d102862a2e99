"""Resource data cache: last-fetched schedule, service and bookings per resource."""
from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

_MISSING = object()


class ResourceDataCache:
    """LRU cache with TTL expiry, keyed on (kind, resource_id).

    Entries are read-only snapshots of upstream data; invalidating or
    refetching needs no coordination.
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: OrderedDict[Tuple[str, Hashable], Tuple[Any, float]] = OrderedDict()

    def get(self, kind: str, resource_id: Hashable) -> Any:
        """Cached value, or None when missing or expired."""
        key = (kind, resource_id)
        entry = self._store.get(key, _MISSING)
        if entry is _MISSING:
            return None
        value, ts = entry
        if self._clock() - ts > self._ttl:
            self._store.pop(key, None)
            return None
        self._store.move_to_end(key)
        logger.debug("ResourceDataCache: hit for %s/%s", kind, resource_id)
        return value

    def put(self, kind: str, resource_id: Hashable, value: Any) -> None:
        key = (kind, resource_id)
        self._store[key] = (value, self._clock())
        self._store.move_to_end(key)
        while len(self._store) > self._max_size:
            self._store.popitem(last=False)

    def invalidate(self, resource_id: Optional[Hashable] = None, kind: Optional[str] = None) -> int:
        """Drop entries for *resource_id* (all kinds unless *kind* is given); None drops everything."""
        if resource_id is None and kind is None:
            dropped = len(self._store)
            self._store.clear()
            return dropped
        doomed = [
            k for k in self._store
            if (resource_id is None or k[1] == resource_id) and (kind is None or k[0] == kind)
        ]
        for k in doomed:
            del self._store[k]
        return len(doomed)

    def clear(self) -> None:
        self._store.clear()

    @property
    def size(self) -> int:
        return len(self._store)
