"""
Ledger 저장소

추가 전용 거래 로그 저장/조회 및 취소(void)
ledger_balance 캐시는 기록과 같은 트랜잭션에서 증분 갱신
"""

from __future__ import annotations

import dataclasses
import json
import logging
from collections.abc import AsyncIterator, Iterable
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.domain.errors import BusinessRuleViolation, NotFoundError, ValidationError
from core.ledger.entry import LEDGER_COLUMNS, AuditRecord, LedgerTransaction
from core.ledger.types import LedgerStatus
from core.utils.timezone import now_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class LedgerStore:
    """Ledger 저장소

    거래 기록은 추가만 가능하며 status만 posted → voided로 바뀐다.
    dedup_key가 같은 기록은 한 번만 저장된다.

    Args:
        db: SQLite 어댑터
        min_reason_length: 취소 사유 최소 길이
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        min_reason_length: int = Defaults.MIN_REASON_LENGTH,
    ):
        self.db = db
        self.min_reason_length = min_reason_length

    # -------------------------------------------------------------------------
    # 기록
    # -------------------------------------------------------------------------

    async def append(self, entry: LedgerTransaction) -> str:
        """거래 저장

        Returns:
            저장된 거래 ID (같은 dedup_key가 이미 있으면 기존 ID)

        Raises:
            PersistenceError: 저장소 장애
        """
        entry_id, _ = await self.append_once(entry)
        return entry_id

    async def append_once(self, entry: LedgerTransaction) -> tuple[str, bool]:
        """거래 저장 (신규 기록 여부 함께 반환)

        Returns:
            (거래 ID, 새로 기록했으면 True)
        """
        async with self.db.transaction():
            cursor = await self.db.execute(
                """
                INSERT OR IGNORE INTO ledger_transaction (
                    id, type, source_account, destination_account, amount_cents,
                    description, transaction_date, created_at, created_by,
                    status, module, metadata_json, dedup_key, operation_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.type.value,
                    entry.source_account,
                    entry.destination_account,
                    entry.amount_cents,
                    entry.description,
                    entry.transaction_date,
                    entry.created_at.isoformat(),
                    entry.created_by,
                    entry.status.value,
                    entry.module,
                    entry.metadata_json(),
                    entry.dedup_key,
                    entry.operation_id,
                ),
            )

            if cursor.rowcount == 0:
                # dedup_key 충돌: 이미 기록된 leg
                row = await self.db.fetchone(
                    "SELECT id FROM ledger_transaction WHERE dedup_key = ?",
                    (entry.dedup_key,),
                )
                existing_id = row[0] if row else entry.id
                logger.debug(
                    "중복 거래 무시",
                    extra={"dedup_key": entry.dedup_key, "transaction_id": existing_id},
                )
                return existing_id, False

            if entry.is_posted:
                await self._apply_to_balance(entry, sign=1)

        logger.debug(
            f"Ledger 거래 저장: {entry.id}",
            extra={
                "type": entry.type.value,
                "module": entry.module,
                "amount_cents": entry.amount_cents,
            },
        )
        return entry.id, True

    async def void(self, transaction_id: str, reason: str, actor: str) -> AuditRecord:
        """거래 취소

        status를 voided로 바꾸고 감사 기록과 잔액 캐시를 함께 갱신.

        Raises:
            ValidationError: 사유 누락/짧음
            NotFoundError: 존재하지 않는 거래
            BusinessRuleViolation: 이미 취소된 거래
            PersistenceError: 저장소 장애
        """
        reason = (reason or "").strip()
        if len(reason) < self.min_reason_length:
            raise ValidationError(
                f"취소 사유는 {self.min_reason_length}자 이상이어야 합니다",
                field="reason",
            )

        async with self.db.transaction():
            entry = await self.get(transaction_id)
            if entry is None:
                raise NotFoundError(
                    f"거래를 찾을 수 없습니다: {transaction_id}",
                    entity_id=transaction_id,
                )
            if entry.status == LedgerStatus.VOIDED:
                raise BusinessRuleViolation(
                    f"이미 취소된 거래입니다: {transaction_id}",
                    rule="already_voided",
                )

            voided = dataclasses.replace(entry, status=LedgerStatus.VOIDED)
            await self.db.execute(
                "UPDATE ledger_transaction SET status = ? WHERE id = ? AND status = ?",
                (LedgerStatus.VOIDED.value, transaction_id, LedgerStatus.POSTED.value),
            )
            await self._apply_to_balance(entry, sign=-1)

            created_at = now_utc().isoformat()
            before = entry.to_dict()
            after = voided.to_dict()
            cursor = await self.db.execute(
                """
                INSERT INTO ledger_audit (
                    transaction_id, action, reason, before_json, after_json, actor, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    transaction_id,
                    "void",
                    reason,
                    json.dumps(before, ensure_ascii=False),
                    json.dumps(after, ensure_ascii=False),
                    actor,
                    created_at,
                ),
            )
            audit_id = cursor.lastrowid

        logger.info(
            f"Ledger 거래 취소: {transaction_id}",
            extra={"actor": actor, "reason": reason},
        )
        return AuditRecord(
            id=int(audit_id or 0),
            transaction_id=transaction_id,
            action="void",
            reason=reason,
            before=before,
            after=after,
            actor=actor,
            created_at=created_at,
        )

    async def _apply_to_balance(self, entry: LedgerTransaction, sign: int) -> None:
        """잔액 캐시 증분 갱신

        destination +amount, source −amount (취소 시 부호 반전)
        """
        assert entry.destination_account is not None
        deltas = (
            (entry.destination_account, sign * entry.amount_cents),
            (entry.source_account, -sign * entry.amount_cents),
        )
        for key, delta in deltas:
            await self.db.execute(
                """
                INSERT INTO ledger_balance (ledger_key, balance_cents, transaction_count, last_transaction_id)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(ledger_key) DO UPDATE SET
                    balance_cents = balance_cents + excluded.balance_cents,
                    transaction_count = transaction_count + excluded.transaction_count,
                    last_transaction_id = excluded.last_transaction_id,
                    updated_at = datetime('now')
                """,
                (key, delta, sign, entry.id),
            )

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def get(self, transaction_id: str) -> LedgerTransaction | None:
        """거래 단건 조회"""
        row = await self.db.fetchone(
            f"SELECT {LEDGER_COLUMNS} FROM ledger_transaction WHERE id = ?",
            (transaction_id,),
        )
        return LedgerTransaction.from_row(row) if row else None

    async def get_by_operation(self, operation_id: str) -> list[LedgerTransaction]:
        """업무 요청 하나로 기록된 거래 목록 (기록 순서)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {LEDGER_COLUMNS} FROM ledger_transaction
            WHERE operation_id = ?
            ORDER BY seq
            """,
            (operation_id,),
        )
        return [LedgerTransaction.from_row(row) for row in rows]

    async def list_by_filter(
        self,
        keys: Iterable[str] | None = None,
        start: str | None = None,
        end: str | None = None,
        status: LedgerStatus | str | None = None,
        module: str | None = None,
    ) -> AsyncIterator[LedgerTransaction]:
        """조건별 거래 조회 (기록 순서)

        Args:
            keys: 출발 또는 도착 계정이 포함된 거래만 (None이면 전체)
            start: transaction_date 시작 (포함, YYYY-MM-DD)
            end: transaction_date 끝 (포함, YYYY-MM-DD)
            status: posted / voided
            module: 업무 모듈
        """
        where: list[str] = []
        params: list[Any] = []

        if keys is not None:
            key_list = list(dict.fromkeys(keys))
            if not key_list:
                return
            placeholders = ", ".join("?" for _ in key_list)
            where.append(
                f"(source_account IN ({placeholders}) OR destination_account IN ({placeholders}))"
            )
            params.extend(key_list)
            params.extend(key_list)
        if start is not None:
            where.append("transaction_date >= ?")
            params.append(start)
        if end is not None:
            where.append("transaction_date <= ?")
            params.append(end)
        if status is not None:
            where.append("status = ?")
            params.append(LedgerStatus(status).value)
        if module is not None:
            where.append("module = ?")
            params.append(module)

        sql = f"SELECT {LEDGER_COLUMNS} FROM ledger_transaction"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY seq"

        rows = await self.db.fetchall(sql, tuple(params))
        for row in rows:
            yield LedgerTransaction.from_row(row)

    async def list_audit(self, transaction_id: str) -> list[AuditRecord]:
        """거래의 취소 이력"""
        rows = await self.db.fetchall(
            """
            SELECT id, transaction_id, action, reason, before_json, after_json, actor, created_at
            FROM ledger_audit
            WHERE transaction_id = ?
            ORDER BY id
            """,
            (transaction_id,),
        )
        return [
            AuditRecord(
                id=row[0],
                transaction_id=row[1],
                action=row[2],
                reason=row[3],
                before=json.loads(row[4]),
                after=json.loads(row[5]),
                actor=row[6],
                created_at=row[7],
            )
            for row in rows
        ]

    async def exists_for(
        self,
        module: str,
        transaction_date: str,
        shift: str,
        exclude_operation_id: str | None = None,
    ) -> bool:
        """같은 일자/교대/모듈의 posted 기록 존재 여부 (월회비 중복 방지)

        Args:
            exclude_operation_id: 재요청 시 자기 자신의 기록은 제외
        """
        sql = """
            SELECT 1 FROM ledger_transaction
            WHERE module = ?
              AND transaction_date = ?
              AND status = 'posted'
              AND COALESCE(json_extract(metadata_json, '$.shift'),
                           json_extract(metadata_json, '$.turno')) = ?
        """
        params: list[Any] = [module, transaction_date, shift]
        if exclude_operation_id is not None:
            sql += " AND (operation_id IS NULL OR operation_id != ?)"
            params.append(exclude_operation_id)
        sql += " LIMIT 1"

        row = await self.db.fetchone(sql, tuple(params))
        return row is not None

    async def count(self) -> int:
        row = await self.db.fetchone("SELECT COUNT(*) FROM ledger_transaction")
        return int(row[0]) if row else 0
