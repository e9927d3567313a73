"""IntegrityReconciler 통합 테스트"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from bookkeeping.context import LedgerContext
from bookkeeping.executor import OperationExecutor
from bookkeeping.reconciler import IntegrityReconciler, has_errors, mismatches
from core.domain.requests import UnidentifiedPixRequest


@pytest.fixture
def reconciler(db: SQLiteAdapter, ctx: LedgerContext) -> IntegrityReconciler:
    return IntegrityReconciler(db, ctx.store, ctx.registry)


class TestIntegrityReconciler:
    """잔액 캐시 정합성"""

    @pytest.mark.asyncio
    async def test_empty(self, reconciler: IntegrityReconciler) -> None:
        assert await reconciler.reconcile() == []

    @pytest.mark.asyncio
    async def test_consistent(self, executor: OperationExecutor, reconciler: IntegrityReconciler) -> None:
        await executor.execute(UnidentifiedPixRequest(amount_cents=15000, description="PIX recebido"))

        checks = await reconciler.reconcile()

        assert [c.key for c in checks] == ["ext:income", "pix_bb"]
        assert not has_errors(checks)
        pix = checks[1]
        assert pix.name == "PIX (Conta BB)"
        assert pix.cached_balance == pix.recomputed_balance == 15000
        assert pix.transaction_count == 1

    @pytest.mark.asyncio
    async def test_corrupted_cache(
        self,
        db: SQLiteAdapter,
        executor: OperationExecutor,
        reconciler: IntegrityReconciler,
    ) -> None:
        """캐시 불일치 감지, 캐시는 고치지 않음"""
        await executor.execute(UnidentifiedPixRequest(amount_cents=15000, description="PIX recebido"))
        await db.execute("UPDATE ledger_balance SET balance_cents = 1 WHERE ledger_key = 'pix_bb'")
        await db.commit()

        checks = await reconciler.reconcile()

        assert has_errors(checks)
        [mismatch] = mismatches(checks)
        assert mismatch.key == "pix_bb"
        assert mismatch.expected == 15000
        assert mismatch.actual == 1
        assert checks[1].difference == 14999
        assert checks[1].to_dict()["status"] == "error"

        row = await db.fetchone("SELECT balance_cents FROM ledger_balance WHERE ledger_key = 'pix_bb'")
        assert row[0] == 1
        assert reconciler.get_stats() == {"reconcile_count": 1, "mismatch_count": 1}

    @pytest.mark.asyncio
    async def test_cache_only_key(self, db: SQLiteAdapter, reconciler: IntegrityReconciler) -> None:
        """로그에 없는 캐시 키도 검사 대상"""
        await db.execute("INSERT INTO ledger_balance (ledger_key, balance_cents) VALUES ('safe', 500)")
        await db.commit()

        [check] = await reconciler.reconcile()
        assert check.key == "safe"
        assert check.recomputed_balance == 0
        assert not check.is_ok
