"""LedgerStore 통합 테스트"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.domain.errors import BusinessRuleViolation, NotFoundError, ValidationError
from core.domain.metadata import MonthlyFeeMetadata, UnknownMetadata
from core.ledger.balance import BalanceAggregator
from core.ledger.entry import LedgerTransaction
from core.ledger.store import LedgerStore
from core.ledger.types import LedgerStatus, LedgerType


def _income(
    key: str = "cash",
    amount: int = 15000,
    dedup_key: str | None = None,
    transaction_date: str = "2025-03-10",
    operation_id: str | None = None,
) -> LedgerTransaction:
    return LedgerTransaction.new(
        type=LedgerType.INCOME,
        source_account="ext:income",
        destination_account=key,
        amount_cents=amount,
        description="Entrada de teste",
        metadata=UnknownMetadata(module="outros"),
        transaction_date=transaction_date,
        dedup_key=dedup_key,
        operation_id=operation_id,
    )


def _expense(key: str = "cash", amount: int = 4000) -> LedgerTransaction:
    return LedgerTransaction.new(
        type=LedgerType.EXPENSE,
        source_account=key,
        destination_account=None,
        amount_cents=amount,
        description="Saída de teste",
        metadata=UnknownMetadata(module="outros"),
        transaction_date="2025-03-11",
    )


@pytest.fixture
def store(db: SQLiteAdapter) -> LedgerStore:
    return LedgerStore(db)


@pytest.fixture
def aggregator(db: SQLiteAdapter, store: LedgerStore) -> BalanceAggregator:
    return BalanceAggregator(db, store)


class TestAppend:
    """거래 기록"""

    @pytest.mark.asyncio
    async def test_append_and_get(self, store: LedgerStore) -> None:
        """저장 후 조회 시 같은 값"""
        entry = _income()
        entry_id = await store.append(entry)

        loaded = await store.get(entry_id)
        assert loaded is not None
        assert loaded.amount_cents == 15000
        assert loaded.destination_account == "cash"
        assert loaded.status == LedgerStatus.POSTED
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_expense_default_sink(self, store: LedgerStore) -> None:
        """도착 계정 없는 지출은 ext:expense로 기록"""
        entry_id = await store.append(_expense())
        loaded = await store.get(entry_id)
        assert loaded.destination_account == "ext:expense"

    @pytest.mark.asyncio
    async def test_append_once_replay(self, store: LedgerStore) -> None:
        """같은 dedup_key는 한 번만 기록"""
        first_id, created = await store.append_once(_income(dedup_key="op-1:income"))
        assert created is True

        second_id, created = await store.append_once(_income(dedup_key="op-1:income"))
        assert created is False
        assert second_id == first_id
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_replay_does_not_touch_balance(
        self, store: LedgerStore, aggregator: BalanceAggregator
    ) -> None:
        await store.append_once(_income(dedup_key="op-1:income"))
        await store.append_once(_income(dedup_key="op-1:income"))
        assert await aggregator.balance_of("cash") == 15000

    @pytest.mark.asyncio
    async def test_get_by_operation(self, store: LedgerStore) -> None:
        """operation_id별 기록 순서 조회"""
        await store.append(_income(amount=100, dedup_key="op-9:a", operation_id="op-9"))
        await store.append(_income(amount=200, dedup_key="op-9:b", operation_id="op-9"))
        await store.append(_income(amount=300))

        entries = await store.get_by_operation("op-9")
        assert [e.amount_cents for e in entries] == [100, 200]


class TestBalanceCache:
    """잔액 캐시 증분 갱신"""

    @pytest.mark.asyncio
    async def test_income_then_expense(
        self, store: LedgerStore, aggregator: BalanceAggregator
    ) -> None:
        await store.append(_income())
        await store.append(_expense())

        assert await aggregator.balance_of("cash") == 11000
        assert await aggregator.balance_of("ext:income") == -15000
        assert await aggregator.balance_of("ext:expense") == 4000

    @pytest.mark.asyncio
    async def test_unknown_key_is_zero(self, aggregator: BalanceAggregator) -> None:
        assert await aggregator.balance_of("safe") == 0

    @pytest.mark.asyncio
    async def test_balances_internal_only(
        self, store: LedgerStore, aggregator: BalanceAggregator
    ) -> None:
        await store.append(_income())
        balances = await aggregator.balances(include_external=False)
        assert balances == {"cash": 15000}

    @pytest.mark.asyncio
    async def test_rebuild_matches_cache(
        self, db: SQLiteAdapter, store: LedgerStore, aggregator: BalanceAggregator
    ) -> None:
        """캐시가 손상되어도 rebuild로 복구"""
        await store.append(_income())
        voided_id = await store.append(_expense())
        await store.void(voided_id, "lançamento duplicado", "user-1")

        await db.execute("UPDATE ledger_balance SET balance_cents = 1 WHERE ledger_key = 'cash'")
        await db.commit()

        rebuilt = await aggregator.rebuild()
        assert rebuilt["cash"] == 15000
        assert await aggregator.balance_of("cash") == 15000


class TestVoid:
    """거래 취소"""

    @pytest.mark.asyncio
    async def test_void_reverts_balance_and_audits(
        self, store: LedgerStore, aggregator: BalanceAggregator
    ) -> None:
        entry_id = await store.append(_income())

        audit = await store.void(entry_id, "  valor errado  ", "user-1")

        assert audit.reason == "valor errado"
        assert audit.before["status"] == "posted"
        assert audit.after["status"] == "voided"
        assert (await store.get(entry_id)).status == LedgerStatus.VOIDED
        assert await aggregator.balance_of("cash") == 0

        records = await store.list_audit(entry_id)
        assert len(records) == 1
        assert records[0].actor == "user-1"

    @pytest.mark.asyncio
    async def test_void_twice(self, store: LedgerStore) -> None:
        entry_id = await store.append(_income())
        await store.void(entry_id, "valor errado", "user-1")

        with pytest.raises(BusinessRuleViolation) as exc_info:
            await store.void(entry_id, "valor errado", "user-1")
        assert exc_info.value.rule == "already_voided"
        assert len(await store.list_audit(entry_id)) == 1

    @pytest.mark.asyncio
    async def test_void_missing(self, store: LedgerStore) -> None:
        with pytest.raises(NotFoundError):
            await store.void("nao-existe", "valor errado", "user-1")

    @pytest.mark.asyncio
    async def test_void_short_reason(self, store: LedgerStore) -> None:
        entry_id = await store.append(_income())
        with pytest.raises(ValidationError):
            await store.void(entry_id, " a ", "user-1")
        assert (await store.get(entry_id)).status == LedgerStatus.POSTED


class TestQueries:
    """조건 조회"""

    @pytest.mark.asyncio
    async def test_list_by_filter(self, store: LedgerStore) -> None:
        await store.append(_income(key="cash", transaction_date="2025-03-01"))
        await store.append(_income(key="pix_bb", transaction_date="2025-03-05"))
        await store.append(_income(key="safe", transaction_date="2025-03-09"))

        by_key = [e async for e in store.list_by_filter(keys=["cash", "safe"])]
        assert [e.destination_account for e in by_key] == ["cash", "safe"]

        by_date = [e async for e in store.list_by_filter(start="2025-03-02", end="2025-03-08")]
        assert [e.destination_account for e in by_date] == ["pix_bb"]

        assert [e async for e in store.list_by_filter(keys=[])] == []

    @pytest.mark.asyncio
    async def test_list_by_status(self, store: LedgerStore) -> None:
        entry_id = await store.append(_income())
        await store.append(_income(amount=50))
        await store.void(entry_id, "valor errado", "user-1")

        posted = [e async for e in store.list_by_filter(status=LedgerStatus.POSTED)]
        assert [e.amount_cents for e in posted] == [50]

    @pytest.mark.asyncio
    async def test_exists_for(self, store: LedgerStore) -> None:
        """월회비 중복 확인 (shift/turno 별칭 포함)"""
        entry = LedgerTransaction.new(
            type=LedgerType.INCOME,
            source_account="ext:income",
            destination_account="cash",
            amount_cents=2500,
            description="Mensalidade Matutino (CASH)",
            metadata=MonthlyFeeMetadata(module="mensalidade", shift="matutino", payment_method="cash"),
            transaction_date="2025-03-10",
            operation_id="op-1",
        )
        await store.append(entry)

        assert await store.exists_for("mensalidade", "2025-03-10", "matutino")
        assert not await store.exists_for("mensalidade", "2025-03-10", "vespertino")
        assert not await store.exists_for("mensalidade_pix", "2025-03-10", "matutino")
        assert not await store.exists_for(
            "mensalidade", "2025-03-10", "matutino", exclude_operation_id="op-1"
        )
