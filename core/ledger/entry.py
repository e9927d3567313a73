"""
Ledger 거래 기록

LedgerTransaction: 추가 전용 로그의 한 행
AuditRecord: 취소(void) 이력
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from core.constants import Defaults
from core.domain.errors import ValidationError
from core.domain.metadata import LedgerMetadata, UnknownMetadata, parse_metadata
from core.ledger.types import LedgerKey, LedgerStatus, LedgerType
from core.utils.timezone import business_date_of, now_utc

# 도착 계정이 반드시 필요한 유형
_DESTINATION_REQUIRED = (LedgerType.INCOME, LedgerType.TRANSFER)
# 도착 계정이 없으면 외부 지출로 간주하는 유형
_DEFAULT_EXPENSE_SINK = (LedgerType.EXPENSE, LedgerType.FEE)


@dataclass
class LedgerTransaction:
    """Ledger 거래

    금액은 항상 양의 정수(센트). 방향은 source → destination으로 표현.
    잔액 = Σ(destination = key) − Σ(source = key), posted 기록만 합산.
    """

    id: str
    type: LedgerType
    source_account: str
    destination_account: str | None
    amount_cents: int
    description: str
    transaction_date: str
    created_at: datetime
    created_by: str
    status: LedgerStatus = LedgerStatus.POSTED
    metadata: LedgerMetadata = field(
        default_factory=lambda: UnknownMetadata(module="outros")
    )
    dedup_key: str | None = None
    operation_id: str | None = None

    def __post_init__(self) -> None:
        self.type = LedgerType(self.type)
        self.status = LedgerStatus(self.status)

        if isinstance(self.amount_cents, bool) or not isinstance(self.amount_cents, int):
            raise ValidationError("금액은 정수(센트)여야 합니다", field="amount_cents")
        if self.amount_cents <= 0:
            raise ValidationError("금액은 0보다 커야 합니다", field="amount_cents")
        if not self.source_account:
            raise ValidationError("출발 계정이 필요합니다", field="source_account")

        if not self.destination_account:
            if self.type in _DESTINATION_REQUIRED:
                raise ValidationError(
                    f"{self.type.value} 거래는 도착 계정이 필요합니다",
                    field="destination_account",
                )
            if self.type in _DEFAULT_EXPENSE_SINK:
                self.destination_account = LedgerKey.EXT_EXPENSE.value
            else:
                raise ValidationError("도착 계정이 필요합니다", field="destination_account")

        if self.source_account == self.destination_account:
            raise ValidationError("출발/도착 계정이 같습니다", field="destination_account")

    @classmethod
    def new(
        cls,
        type: LedgerType,
        source_account: str,
        destination_account: str | None,
        amount_cents: int,
        description: str,
        metadata: LedgerMetadata,
        transaction_date: str | None = None,
        created_by: str | None = None,
        dedup_key: str | None = None,
        operation_id: str | None = None,
        created_at: datetime | None = None,
    ) -> LedgerTransaction:
        """새 거래 생성 (id, created_at 자동 부여)"""
        created_at = created_at or now_utc()
        return cls(
            id=str(uuid4()),
            type=type,
            source_account=source_account,
            destination_account=destination_account,
            amount_cents=amount_cents,
            description=description,
            transaction_date=transaction_date or business_date_of(created_at),
            created_at=created_at,
            created_by=created_by or Defaults.CREATED_BY_SYSTEM,
            metadata=metadata,
            dedup_key=dedup_key,
            operation_id=operation_id,
        )

    @property
    def module(self) -> str:
        return self.metadata.module

    @property
    def is_posted(self) -> bool:
        return self.status == LedgerStatus.POSTED

    def touches(self, key: str) -> bool:
        return key in (self.source_account, self.destination_account)

    def signed_amount_for(self, key: str) -> int:
        """key 관점의 부호 있는 금액 (유입 +, 유출 −)"""
        if key == self.destination_account:
            return self.amount_cents
        if key == self.source_account:
            return -self.amount_cents
        return 0

    def metadata_json(self) -> str:
        return json.dumps(self.metadata.to_dict(), ensure_ascii=False, sort_keys=True)

    def to_dict(self) -> dict[str, Any]:
        """API/감사 기록용 직렬화"""
        return {
            "id": self.id,
            "type": self.type.value,
            "source_account": self.source_account,
            "destination_account": self.destination_account,
            "amount_cents": self.amount_cents,
            "description": self.description,
            "transaction_date": self.transaction_date,
            "created_at": self.created_at.isoformat(),
            "created_by": self.created_by,
            "status": self.status.value,
            "metadata": self.metadata.to_dict(),
            "dedup_key": self.dedup_key,
            "operation_id": self.operation_id,
        }

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> LedgerTransaction:
        """DB 행 → LedgerTransaction

        컬럼 순서는 LEDGER_COLUMNS와 동일해야 한다.
        """
        return cls(
            id=row[0],
            type=LedgerType(row[1]),
            source_account=row[2],
            destination_account=row[3],
            amount_cents=int(row[4]),
            description=row[5] or "",
            transaction_date=row[6],
            created_at=datetime.fromisoformat(row[7]),
            created_by=row[8],
            status=LedgerStatus(row[9]),
            metadata=parse_metadata(json.loads(row[10]) if row[10] else None),
            dedup_key=row[11],
            operation_id=row[12],
        )


# SELECT 시 사용하는 컬럼 순서 (from_row와 일치)
LEDGER_COLUMNS: str = (
    "id, type, source_account, destination_account, amount_cents, description, "
    "transaction_date, created_at, created_by, status, metadata_json, dedup_key, operation_id"
)


@dataclass(frozen=True)
class AuditRecord:
    """취소 이력"""

    id: int
    transaction_id: str
    action: str
    reason: str
    before: dict[str, Any]
    after: dict[str, Any]
    actor: str
    created_at: str
