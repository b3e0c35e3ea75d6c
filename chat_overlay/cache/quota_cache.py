"""
YouTube 라이브 자동 탐지용 메모리 캐시.

search API 는 호출당 쿼터 소모가 커서, 채널별 결과를 TTL(기본 5분) 동안 재사용한다.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_MINUTES = 5


@dataclass
class QuotaCacheEntry:
    payload: Any
    stored_at: float


class QuotaCache:
    """키별 TTL 캐시. 만료 항목은 get 시점에 제거."""

    def __init__(
        self,
        ttl_minutes: float = DEFAULT_TTL_MINUTES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl_minutes: 항목 유효 시간 (분). 생성 후 변경 불가
            clock: 초 단위 시계 (테스트에서 가짜 시계 주입)
        """
        self._entries: dict[str, QuotaCacheEntry] = {}
        self._ttl = float(ttl_minutes) * 60.0
        self._clock = clock
        logger.info("캐시 초기화 (TTL %s분)", ttl_minutes)

    def get(self, key: str) -> Optional[Any]:
        """유효한 값이면 반환, 없거나 만료면 None (만료 항목은 삭제)."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        age = self._clock() - entry.stored_at
        if age > self._ttl:
            del self._entries[key]
            logger.info("캐시 만료: %s", key)
            return None
        logger.info("캐시 적중: %s (age %ds)", key, round(age))
        return entry.payload

    def set(self, key: str, payload: Any) -> None:
        self._entries[key] = QuotaCacheEntry(payload=payload, stored_at=self._clock())
        logger.info("캐시 저장: %s", key)

    def has(self, key: str) -> bool:
        """만료 여부와 상관없이 키 존재 여부."""
        return key in self._entries

    def delete(self, key: str) -> bool:
        existed = self._entries.pop(key, None) is not None
        if existed:
            logger.info("캐시 항목 삭제: %s", key)
        return existed

    def clear(self) -> int:
        """전부 삭제하고 지운 개수 반환."""
        size = len(self._entries)
        self._entries.clear()
        logger.info("캐시 비움 (%d개 삭제)", size)
        return size

    def stats(self) -> dict[str, Any]:
        """관측용 통계: 개수, TTL, 항목별 경과/남은 시간(초)."""
        now = self._clock()
        entries = []
        for key, entry in self._entries.items():
            age = now - entry.stored_at
            entries.append({
                "key": key,
                "ageSeconds": round(age),
                "expiresInSeconds": round(self._ttl - age),
            })
        return {
            "size": len(self._entries),
            "ttlMinutes": self._ttl / 60.0,
            "entries": entries,
        }
