# backend/app/notion/cache.py

"""
プロセス内の簡易 TTL キャッシュ。

複数イベントが同じキーを同時に書き込んでも、値は同じデータベーススキーマなので
後勝ちで問題ない。ロックは取らない。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    value: Any
    expires_at: Optional[float] = None


class InMemoryCacheService:
    """
    dict ベースの TTL キャッシュ。

    - get: 期限切れのエントリは削除して None を返す
    - set: ttl_seconds が 0 以下 / None の場合は無期限
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._entries: Dict[str, _CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.expires_at is not None and entry.expires_at <= self._clock():
            logger.debug("Cache expired for key %s, deleting.", key)
            self._entries.pop(key, None)
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        expires_at = None
        if ttl_seconds and ttl_seconds > 0:
            expires_at = self._clock() + ttl_seconds
        self._entries[key] = _CacheEntry(value=value, expires_at=expires_at)
        logger.debug("Cache set for key %s (ttl=%s).", key, ttl_seconds)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
