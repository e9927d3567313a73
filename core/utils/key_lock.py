"""
계정 키 단위 잠금

같은 프로세스 안에서 동일 계정에 대한 "잔액 조회 → 검증 → 기록"을 직렬화한다.
여러 키를 잡을 때는 항상 정렬된 순서로 획득하여 교착을 막는다.
프로세스 간 경합은 보호하지 않는다 (정합성 검사로 탐지).
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)


class KeyLocks:
    """키별 asyncio.Lock 레지스트리"""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, keys: Iterable[str]) -> AsyncIterator[None]:
        """여러 키를 정렬 순서로 잠금

        사용 예:
            async with locks.hold(["cash", "pix_bb"]):
                ...
        """
        ordered = sorted(set(keys))
        acquired: list[asyncio.Lock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
