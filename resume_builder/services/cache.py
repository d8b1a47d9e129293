"""
Result cache for AI completions.

Entries are keyed by operation name plus a SHA-256 of the canonical JSON of
the full request payload, so identical input is served without a new
external call. An in-process LRU is always present; Redis is consulted
too when it is configured. Cache failures never become request failures.
"""

import hashlib
import json
from collections import OrderedDict
from typing import Any, Optional

from redis.exceptions import RedisError

from resume_builder.services.redis_client import get_redis
from resume_builder.utils.logger import get_logger

_log = get_logger("cache")

KEY_PREFIX = "resume_builder:ai:"


def payload_key(operation: str, payload: Any) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return f"{operation}:{digest}"


class AICache:
    def __init__(self, max_entries: int = 512, ttl_seconds: int = 24 * 3600):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries: "OrderedDict[str, Any]" = OrderedDict()

    def __len__(self):
        return len(self._entries)

    async def get(self, key: str) -> Optional[Any]:
        if key in self._entries:
            self._entries.move_to_end(key)
            return self._entries[key]

        r = get_redis()
        if r is None:
            return None
        try:
            raw = await r.get(f"{KEY_PREFIX}{key}")
            if raw is None:
                return None
            value = json.loads(raw)
        except (RedisError, ValueError) as exc:
            _log.debug(f"[cache] GET {key} failed: {exc}")
            return None
        self._remember(key, value)
        return value

    async def set(self, key: str, value: Any) -> None:
        self._remember(key, value)

        r = get_redis()
        if r is None:
            return
        try:
            await r.set(f"{KEY_PREFIX}{key}", json.dumps(value), ex=self.ttl_seconds)
        except RedisError as exc:
            _log.debug(f"[cache] SET {key} failed: {exc}")

    def clear(self) -> None:
        self._entries.clear()

    def _remember(self, key: str, value: Any) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
