"""
잔액 계산

compute_balances: posted 기록만으로 계정별 잔액을 계산하는 순수 함수
BalanceAggregator: ledger_balance 캐시 조회 및 재구축
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from core.ledger.entry import LedgerTransaction
from core.ledger.types import EXTERNAL_PREFIX, LedgerStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)


def compute_balances(entries: Iterable[LedgerTransaction]) -> dict[str, int]:
    """계정별 잔액 계산 (센트)

    잔액 = Σ(destination = key) − Σ(source = key), posted 기록만 합산.
    같은 입력이면 항상 같은 결과.
    """
    balances: dict[str, int] = {}
    for entry in entries:
        if entry.status != LedgerStatus.POSTED:
            continue
        dest = entry.destination_account
        assert dest is not None
        balances[dest] = balances.get(dest, 0) + entry.amount_cents
        balances[entry.source_account] = balances.get(entry.source_account, 0) - entry.amount_cents
    return balances


def count_transactions(entries: Iterable[LedgerTransaction]) -> dict[str, int]:
    """계정별 posted 거래 건수"""
    counts: dict[str, int] = {}
    for entry in entries:
        if entry.status != LedgerStatus.POSTED:
            continue
        for key in (entry.source_account, entry.destination_account):
            if key is not None:
                counts[key] = counts.get(key, 0) + 1
    return counts


class BalanceAggregator:
    """잔액 조회

    Args:
        db: SQLite 어댑터
        store: LedgerStore (rebuild 시 원본 로그 조회용)
    """

    def __init__(self, db: SQLiteAdapter, store: LedgerStore):
        self.db = db
        self.store = store

    async def balance_of(self, key: str) -> int:
        """계정 잔액 (기록 없으면 0)"""
        row = await self.db.fetchone(
            "SELECT balance_cents FROM ledger_balance WHERE ledger_key = ?",
            (key,),
        )
        return int(row[0]) if row else 0

    async def balances(
        self,
        keys: Iterable[str] | None = None,
        include_external: bool = True,
    ) -> dict[str, int]:
        """캐시된 잔액 전체 (또는 지정 키). 지정 키에 기록이 없으면 0"""
        rows = await self.db.fetchall(
            "SELECT ledger_key, balance_cents FROM ledger_balance ORDER BY ledger_key"
        )
        cached = {row[0]: int(row[1]) for row in rows}

        if keys is not None:
            result = {key: cached.get(key, 0) for key in keys}
        else:
            result = cached

        if not include_external:
            result = {k: v for k, v in result.items() if not k.startswith(EXTERNAL_PREFIX)}
        return result

    async def rebuild(self) -> dict[str, int]:
        """원본 로그로 ledger_balance 캐시 재구축

        Returns:
            재구축된 잔액
        """
        entries = [
            entry async for entry in self.store.list_by_filter(status=LedgerStatus.POSTED)
        ]
        balances = compute_balances(entries)
        counts = count_transactions(entries)

        async with self.db.transaction():
            await self.db.execute("DELETE FROM ledger_balance")
            await self.db.executemany(
                """
                INSERT INTO ledger_balance (ledger_key, balance_cents, transaction_count)
                VALUES (?, ?, ?)
                """,
                [(key, balance, counts.get(key, 0)) for key, balance in balances.items()],
            )

        logger.info(
            "잔액 캐시 재구축 완료",
            extra={"keys": len(balances), "transactions": len(entries)},
        )
        return balances
