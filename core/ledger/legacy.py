"""
과거 거래 저장소 (읽기 전용)

Ledger 도입 이전의 transactions 테이블 조회.
이 테이블의 금액은 Ledger 잔액과 합산하지 않는다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LegacyTransaction:
    """과거 거래 기록 (계정 ID 기반, 방향은 direction 컬럼)"""

    id: str
    transaction_date: str
    module: str
    amount_cents: int
    direction: str
    payment_method: str | None
    shift: str | None
    description: str | None
    notes: str | None
    status: str
    created_by: str | None
    source_account_id: str | None
    destination_account_id: str | None
    merchant_id: str | None
    origin_fund: str | None
    entity_id: str | None
    created_at: str


_LEGACY_COLUMNS = (
    "id, transaction_date, module, amount_cents, direction, payment_method, shift, "
    "description, notes, status, created_by, source_account_id, destination_account_id, "
    "merchant_id, origin_fund, entity_id, created_at"
)


def _from_row(row: tuple[Any, ...]) -> LegacyTransaction:
    return LegacyTransaction(
        id=row[0],
        transaction_date=row[1],
        module=row[2],
        amount_cents=int(row[3]),
        direction=row[4],
        payment_method=row[5],
        shift=row[6],
        description=row[7],
        notes=row[8],
        status=row[9],
        created_by=row[10],
        source_account_id=row[11],
        destination_account_id=row[12],
        merchant_id=row[13],
        origin_fund=row[14],
        entity_id=row[15],
        created_at=row[16],
    )


class LegacyTransactionStore:
    """과거 거래 조회

    Args:
        db: SQLite 어댑터
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get(self, transaction_id: str) -> LegacyTransaction | None:
        row = await self.db.fetchone(
            f"SELECT {_LEGACY_COLUMNS} FROM transactions WHERE id = ?",
            (transaction_id,),
        )
        return _from_row(row) if row else None

    async def list_by_filter(
        self,
        account_ids: Iterable[str] | None = None,
        start: str | None = None,
        end: str | None = None,
        entity_id: str | None = None,
    ) -> list[LegacyTransaction]:
        """조건별 과거 거래 조회

        Args:
            account_ids: 출발/도착 계정 또는 가맹점이 포함된 거래만
            start: transaction_date 시작 (포함)
            end: transaction_date 끝 (포함)
            entity_id: 회계 주체
        """
        where: list[str] = []
        params: list[Any] = []

        if account_ids is not None:
            ids = list(dict.fromkeys(account_ids))
            if not ids:
                return []
            placeholders = ", ".join("?" for _ in ids)
            where.append(
                f"(source_account_id IN ({placeholders}) "
                f"OR destination_account_id IN ({placeholders}) "
                f"OR merchant_id IN ({placeholders}))"
            )
            params.extend(ids * 3)
        if start is not None:
            where.append("transaction_date >= ?")
            params.append(start)
        if end is not None:
            where.append("transaction_date <= ?")
            params.append(end)
        if entity_id is not None:
            where.append("entity_id = ?")
            params.append(entity_id)

        sql = f"SELECT {_LEGACY_COLUMNS} FROM transactions"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY transaction_date, created_at"

        rows = await self.db.fetchall(sql, tuple(params))
        return [_from_row(row) for row in rows]
