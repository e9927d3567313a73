"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from bookkeeping.context import LedgerContext
from bookkeeping.executor import OperationExecutor
from core.config.loader import Settings, get_settings
from core.utils.key_lock import KeyLocks


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    잔액/거래 조회, 정합성 검사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    업무 요청 기록, 거래 취소 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


# =========================================================================
# 계정 키 잠금 (프로세스 내 요청 간 공유)
# =========================================================================

_key_locks = KeyLocks()


def get_key_locks() -> KeyLocks:
    """요청 간 공유되는 계정 키 잠금"""
    return _key_locks


async def get_executor(
    db: SQLiteAdapter = Depends(get_db_write),
    settings: Settings = Depends(get_app_settings),
    locks: KeyLocks = Depends(get_key_locks),
) -> OperationExecutor:
    """요청마다 DB에서 레지스트리를 다시 읽어 Executor 생성"""
    ctx = await LedgerContext.create(db, rules=settings.rules, locks=locks)
    return OperationExecutor(ctx)
