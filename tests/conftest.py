"""
pytest 공통 fixture 정의

임시 SQLite DB, 업무 처리 컨텍스트, Executor
"""

import tempfile
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from bookkeeping.context import LedgerContext
from bookkeeping.executor import OperationExecutor
from core.config.loader import LedgerRules
from core.domain.requests import AdjustmentRequest
from core.ledger.schema import init_ledger_schema

# 테스트용 가맹점 (id, name)
TEST_MERCHANTS = [
    ("merc-papelaria", "Papelaria Central"),
    ("merc-padaria", "Padaria do Bairro"),
]


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest_asyncio.fixture
async def db(temp_dir: Path) -> AsyncIterator[SQLiteAdapter]:
    """스키마와 초기 계정, 테스트 가맹점이 준비된 임시 DB"""
    adapter = SQLiteAdapter(temp_dir / "test_ledger.db")
    await adapter.connect()
    await init_ledger_schema(adapter)
    await adapter.executemany(
        "INSERT INTO merchant (id, name) VALUES (?, ?)",
        TEST_MERCHANTS,
    )
    await adapter.commit()

    yield adapter

    await adapter.close()


@pytest.fixture
def rules() -> LedgerRules:
    return LedgerRules()


@pytest_asyncio.fixture
async def ctx(db: SQLiteAdapter, rules: LedgerRules) -> LedgerContext:
    return await LedgerContext.create(db, rules=rules)


@pytest.fixture
def executor(ctx: LedgerContext) -> OperationExecutor:
    return OperationExecutor(ctx)


@pytest.fixture
def set_balance(executor: OperationExecutor) -> Callable[[str, int], Awaitable[None]]:
    """조정 거래로 계정 잔액을 맞추는 헬퍼"""

    async def _set(key: str, cents: int) -> None:
        result = await executor.execute(
            AdjustmentRequest(
                account=key,
                target_balance_cents=cents,
                reason="saldo inicial de teste",
            )
        )
        assert result.success, result.error

    return _set
