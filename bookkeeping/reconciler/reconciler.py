"""
Integrity Reconciler

원본 거래 로그로 다시 계산한 잔액과 ledger_balance 캐시를 비교하여 불일치 감지.
읽기 전용. 캐시를 고치지 않는다 (복구는 BalanceAggregator.rebuild).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from core.constants import Tolerances
from core.ledger.balance import compute_balances, count_transactions
from core.ledger.keys import AccountKeyRegistry
from core.ledger.types import LedgerStatus

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class IntegrityCheck:
    """계정 하나의 정합성 검사 결과"""

    key: str
    name: str
    cached_balance: int
    recomputed_balance: int
    difference: int
    status: str
    transaction_count: int

    @property
    def is_ok(self) -> bool:
        return self.status == STATUS_OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "cached_balance": self.cached_balance,
            "recomputed_balance": self.recomputed_balance,
            "difference": self.difference,
            "status": self.status,
            "transaction_count": self.transaction_count,
        }


@dataclass(frozen=True)
class IntegrityMismatch:
    """불일치 발견 (예외가 아닌 검사 결과)"""

    key: str
    expected: int
    actual: int
    description: str


def has_errors(checks: list[IntegrityCheck]) -> bool:
    return any(not c.is_ok for c in checks)


def mismatches(checks: list[IntegrityCheck]) -> list[IntegrityMismatch]:
    """불일치 항목만 추출 (expected = 재계산, actual = 캐시)"""
    return [
        IntegrityMismatch(
            key=c.key,
            expected=c.recomputed_balance,
            actual=c.cached_balance,
            description=(
                f"Balance cache mismatch: {c.name} "
                f"cached {c.cached_balance}, recomputed {c.recomputed_balance}"
            ),
        )
        for c in checks
        if not c.is_ok
    ]


class IntegrityReconciler:
    """잔액 캐시 정합성 검사기

    Args:
        db: SQLite 어댑터
        store: LedgerStore
        registry: 계정 이름 표시용 레지스트리
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        store: LedgerStore,
        registry: AccountKeyRegistry | None = None,
    ):
        self.db = db
        self.store = store
        self.registry = registry or AccountKeyRegistry.default()

        self._reconcile_count = 0
        self._mismatch_count = 0

    async def _cached(self) -> dict[str, int]:
        rows = await self.db.fetchall("SELECT ledger_key, balance_cents FROM ledger_balance")
        return {row[0]: int(row[1]) for row in rows}

    async def reconcile(self) -> list[IntegrityCheck]:
        """전체 계정 검사

        캐시와 재계산 어느 한쪽에만 있는 키도 포함. 키 순 정렬.
        """
        entries = [
            entry async for entry in self.store.list_by_filter(status=LedgerStatus.POSTED)
        ]
        recomputed = compute_balances(entries)
        counts = count_transactions(entries)
        cached = await self._cached()

        checks: list[IntegrityCheck] = []
        for key in sorted(set(recomputed) | set(cached)):
            cached_balance = cached.get(key, 0)
            recomputed_balance = recomputed.get(key, 0)
            difference = recomputed_balance - cached_balance
            status = STATUS_OK if abs(difference) < Tolerances.RECONCILE_CENTS else STATUS_ERROR
            checks.append(
                IntegrityCheck(
                    key=key,
                    name=self.registry.resolve_name(key),
                    cached_balance=cached_balance,
                    recomputed_balance=recomputed_balance,
                    difference=difference,
                    status=status,
                    transaction_count=counts.get(key, 0),
                )
            )

        self._reconcile_count += 1
        found = mismatches(checks)
        self._mismatch_count += len(found)
        for mismatch in found:
            logger.warning(
                mismatch.description,
                extra={
                    "key": mismatch.key,
                    "expected": mismatch.expected,
                    "actual": mismatch.actual,
                },
            )

        logger.info(
            "정합성 검사 완료",
            extra={"keys": len(checks), "mismatches": len(found)},
        )
        return checks

    def get_stats(self) -> dict[str, Any]:
        return {
            "reconcile_count": self._reconcile_count,
            "mismatch_count": self._mismatch_count,
        }
