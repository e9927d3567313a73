"""
Operation Handler 기본 클래스

모든 업무 Handler가 구현해야 할 인터페이스와 공통 처리 흐름 정의

처리 흐름:
    validate (형식 검증, 저장소 접근 없음)
    → 관련 계정 키 잠금 (정렬 순서)
    → 같은 operation_id로 이미 기록된 거래 조회
    → plan (잔액/업무 규칙 검증 후 기록할 거래 목록 작성)
    → 기존 거래와 계획 비교 (다르면 operation_id 충돌)
    → 누락된 거래만 순서대로 기록
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from bookkeeping.context import LedgerContext
from core.domain.errors import (
    BusinessRuleViolation,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from core.domain.metadata import LedgerMetadata
from core.domain.requests import BatchLine, OperationRequest
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import is_external
from core.ledger.types import LedgerType
from core.types import ErrorKind
from core.utils.idempotency import make_entry_dedup_key, parse_dedup_key
from core.utils.timezone import today_brt

logger = logging.getLogger(__name__)


@dataclass
class DiscardedLine:
    """일괄 요청에서 제외된 줄"""

    index: int
    reason: str


@dataclass
class OperationResult:
    """업무 처리 결과

    - success: 모든 거래 기록 완료 여부
    - entry_ids: 기록된(또는 이미 있던) 거래 ID
    - posted_count / total_count: 부분 실패 시 "k / n"
    - touched_balances: 관련 내부 계정의 기록 후 잔액
    - error_kind: validation | business_rule | persistence | not_found
    - replayed: 같은 operation_id로 이미 모두 기록되어 새로 쓴 것이 없음
    """

    success: bool
    operation_id: str
    entry_ids: list[str] = field(default_factory=list)
    posted_count: int = 0
    total_count: int = 0
    touched_balances: dict[str, int] = field(default_factory=dict)
    error: str | None = None
    error_kind: ErrorKind | None = None
    rule: str | None = None
    replayed: bool = False
    discarded: list[DiscardedLine] = field(default_factory=list)

    @classmethod
    def from_error(cls, operation_id: str, error: LedgerError) -> OperationResult:
        kind = ErrorKind.PERSISTENCE
        if isinstance(error, ValidationError):
            kind = ErrorKind.VALIDATION
        elif isinstance(error, BusinessRuleViolation):
            kind = ErrorKind.BUSINESS_RULE
        elif isinstance(error, NotFoundError):
            kind = ErrorKind.NOT_FOUND
        return cls(
            success=False,
            operation_id=operation_id,
            error=error.message,
            error_kind=kind,
            rule=getattr(error, "rule", None),
        )

    @property
    def summary(self) -> str:
        return f"{self.posted_count}/{self.total_count}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "operation_id": self.operation_id,
            "entry_ids": list(self.entry_ids),
            "posted_count": self.posted_count,
            "total_count": self.total_count,
            "touched_balances": dict(self.touched_balances),
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "rule": self.rule,
            "replayed": self.replayed,
            "discarded": [{"index": d.index, "reason": d.reason} for d in self.discarded],
        }


@dataclass(frozen=True)
class PlannedEntry:
    """기록 예정 거래 (leg = 요청 내 구분자)"""

    leg: str
    entry: LedgerTransaction


# -----------------------------------------------------------------------------
# 검증 헬퍼
# -----------------------------------------------------------------------------


def require_text(value: str | None, min_length: int, field_name: str, label: str) -> str:
    """앞뒤 공백 제거 후 최소 길이 검증"""
    text = (value or "").strip()
    if len(text) < min_length:
        raise ValidationError(f"{label}은(는) {min_length}자 이상이어야 합니다", field=field_name)
    return text


def require_positive(amount: int, field_name: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("금액은 정수(센트)여야 합니다", field=field_name)
    if amount <= 0:
        raise ValidationError("금액은 0보다 커야 합니다", field=field_name)
    return amount


def require_non_negative(amount: int, field_name: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValidationError("금액은 정수(센트)여야 합니다", field=field_name)
    if amount < 0:
        raise ValidationError("금액은 음수일 수 없습니다", field=field_name)
    return amount


def require_choice(value: str | None, choices: type[Enum], field_name: str) -> Any:
    try:
        return choices(value)
    except ValueError as e:
        valid = [c.value for c in choices]
        raise ValidationError(
            f"유효하지 않은 값입니다: '{value}'. 유효한 값: {valid}",
            field=field_name,
        ) from e


def require_date(value: str | None, field_name: str = "transaction_date") -> str:
    """YYYY-MM-DD 검증 (없으면 오늘)"""
    if not value:
        return today_brt()
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise ValidationError(f"날짜 형식 오류: {value}", field=field_name) from e


def _is_iso_date(value: str) -> bool:
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def split_batch_lines(
    lines: list[BatchLine],
    min_description_length: int,
) -> tuple[list[tuple[int, BatchLine]], list[DiscardedLine]]:
    """일괄 요청 줄 분리 (유효 / 제외)

    유효 조건: amount > 0, 공백 제거 후 설명 최소 길이 이상,
    줄 날짜가 있으면 YYYY-MM-DD
    """
    valid: list[tuple[int, BatchLine]] = []
    discarded: list[DiscardedLine] = []
    for index, line in enumerate(lines):
        if isinstance(line.amount_cents, bool) or not isinstance(line.amount_cents, int) or line.amount_cents <= 0:
            discarded.append(DiscardedLine(index, "amount"))
        elif len((line.description or "").strip()) < min_description_length:
            discarded.append(DiscardedLine(index, "description"))
        elif line.transaction_date and not _is_iso_date(line.transaction_date):
            discarded.append(DiscardedLine(index, "transaction_date"))
        else:
            valid.append((index, line))
    return valid, discarded


def _money_fields(entry: LedgerTransaction) -> tuple[Any, ...]:
    return (
        entry.type,
        entry.source_account,
        entry.destination_account,
        entry.amount_cents,
    )


# -----------------------------------------------------------------------------
# Handler
# -----------------------------------------------------------------------------


class OperationHandler(ABC):
    """Operation Handler 추상 클래스

    업무 요청 타입별로 이 클래스를 상속하여 구현.
    검증/규칙 실패는 저장소를 건드리지 않고 실패 결과로 반환.

    Args:
        ctx: 업무 처리 컨텍스트
    """

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx

    @property
    @abstractmethod
    def operation_type(self) -> str:
        """처리하는 요청 타입"""
        pass

    def validate(self, request: Any) -> None:
        """형식 검증 (저장소 접근 없음)"""
        return None

    @abstractmethod
    async def execute(self, request: OperationRequest) -> OperationResult:
        """요청 처리"""
        pass

    def failed(self, request: OperationRequest, error: LedgerError) -> OperationResult:
        """업무 오류 → 실패 결과"""
        logger.warning(
            f"업무 처리 실패: {self.operation_type}",
            extra={
                "operation_id": request.operation_id,
                "code": error.code,
                "error": error.message,
            },
        )
        return OperationResult.from_error(request.operation_id, error)


class PostingHandler(OperationHandler):
    """거래를 기록하는 Handler

    하위 클래스는 잠글 계정과 기록할 거래 목록(plan)만 정의.
    """

    @abstractmethod
    def lock_keys(self, request: Any) -> list[str]:
        """잠글 계정 키"""
        pass

    @abstractmethod
    async def plan(
        self,
        request: Any,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        """업무 규칙 검증 후 기록할 거래 목록 작성

        Args:
            request: 요청
            existing: 같은 operation_id로 이미 기록된 거래 (leg → 거래)
        """
        pass

    async def execute(self, request: OperationRequest) -> OperationResult:
        try:
            self.validate(request)
            keys = [k for k in self.lock_keys(request) if k and not is_external(k)]
            async with self.ctx.locks.hold(keys):
                existing = await self._existing_legs(request.operation_id)
                planned = await self.plan(request, existing)
                self._check_conflicts(request, planned, existing)
                return await self._write(request, planned, existing)
        except LedgerError as e:
            return self.failed(request, e)

    # -------------------------------------------------------------------------
    # 공통 처리
    # -------------------------------------------------------------------------

    def build(
        self,
        request: OperationRequest,
        leg: str,
        type: LedgerType,
        source: str,
        destination: str | None,
        amount_cents: int,
        description: str,
        metadata: LedgerMetadata,
        transaction_date: str | None = None,
    ) -> PlannedEntry:
        """기록 예정 거래 생성 (dedup_key = {operation_id}:{leg})"""
        entry = LedgerTransaction.new(
            type=type,
            source_account=source,
            destination_account=destination,
            amount_cents=amount_cents,
            description=description,
            metadata=metadata,
            transaction_date=transaction_date or require_date(request.transaction_date),
            created_by=request.created_by,
            dedup_key=make_entry_dedup_key(request.operation_id, leg),
            operation_id=request.operation_id,
        )
        return PlannedEntry(leg=leg, entry=entry)

    async def _existing_legs(self, operation_id: str) -> dict[str, LedgerTransaction]:
        entries = await self.ctx.store.get_by_operation(operation_id)
        existing: dict[str, LedgerTransaction] = {}
        for entry in entries:
            parsed = parse_dedup_key(entry.dedup_key or "")
            if parsed is not None:
                existing[parsed[1]] = entry
        return existing

    def _check_conflicts(
        self,
        request: OperationRequest,
        planned: list[PlannedEntry],
        existing: dict[str, LedgerTransaction],
    ) -> None:
        """같은 operation_id로 기록된 거래가 이번 요청과 다르면 거부

        Raises:
            BusinessRuleViolation: rule=operation_id_conflict
        """
        planned_by_leg = {item.leg: item.entry for item in planned}
        for leg, entry in existing.items():
            expected = planned_by_leg.get(leg)
            if expected is None or _money_fields(entry) != _money_fields(expected):
                raise BusinessRuleViolation(
                    f"다른 요청에 이미 사용된 operation_id입니다: {request.operation_id}",
                    rule="operation_id_conflict",
                )

    async def balance_before(self, key: str, existing: dict[str, LedgerTransaction]) -> int:
        """이번 요청의 기존 기록을 되돌린 잔액 (재요청 시 검증 기준)"""
        balance = await self.ctx.aggregator.balance_of(key)
        for entry in existing.values():
            if entry.is_posted:
                balance -= entry.signed_amount_for(key)
        return balance

    async def ensure_funds(
        self,
        key: str,
        needed_cents: int,
        existing: dict[str, LedgerTransaction],
    ) -> None:
        """잔액 초과 차단

        Raises:
            BusinessRuleViolation: rule=insufficient_balance
        """
        available = await self.balance_before(key, existing)
        if needed_cents > available:
            raise BusinessRuleViolation(
                f"잔액 부족: {self.ctx.registry.resolve_name(key)} "
                f"(필요 {needed_cents}, 잔액 {available})",
                rule="insufficient_balance",
            )

    async def _write(
        self,
        request: OperationRequest,
        planned: list[PlannedEntry],
        existing: dict[str, LedgerTransaction],
    ) -> OperationResult:
        """누락된 거래만 순서대로 기록

        저장소 장애 시 나머지는 중단하고 "k / n" 결과 반환.
        """
        result = OperationResult(
            success=False,
            operation_id=request.operation_id,
            total_count=len(planned),
        )
        written = 0

        for item in planned:
            if item.leg in existing:
                result.entry_ids.append(existing[item.leg].id)
                result.posted_count += 1
                continue
            try:
                entry_id, created = await self.ctx.store.append_once(item.entry)
            except PersistenceError as e:
                result.error = f"{result.summary} 기록 후 실패: {e.message}"
                result.error_kind = ErrorKind.PERSISTENCE
                logger.error(
                    f"업무 처리 중 저장 실패: {self.operation_type}",
                    extra={
                        "operation_id": request.operation_id,
                        "leg": item.leg,
                        "posted": result.posted_count,
                        "total": result.total_count,
                    },
                )
                return result
            result.entry_ids.append(entry_id)
            result.posted_count += 1
            if created:
                written += 1

        result.success = True
        result.replayed = bool(planned) and written == 0
        result.touched_balances = await self._touched_balances(planned)

        logger.info(
            f"업무 처리 완료: {self.operation_type}",
            extra={
                "operation_id": request.operation_id,
                "written": written,
                "total": result.total_count,
                "replayed": result.replayed,
            },
        )
        return result

    async def _touched_balances(self, planned: list[PlannedEntry]) -> dict[str, int]:
        keys: set[str] = set()
        for item in planned:
            for key in (item.entry.source_account, item.entry.destination_account):
                if key and not is_external(key):
                    keys.add(key)
        return await self.ctx.aggregator.balances(sorted(keys))
