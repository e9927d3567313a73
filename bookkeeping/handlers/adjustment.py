"""
잔액 조정 Handler

목표 잔액을 입력받아 차액만큼 조정 거래 한 건 기록.
차액 > 0: ext:income → key, 차액 < 0: key → ext:expense
"""

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_date,
    require_text,
)
from core.domain.errors import BusinessRuleViolation, ValidationError
from core.domain.metadata import AdjustmentMetadata
from core.domain.requests import AdjustmentRequest, OperationTypes
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import is_external
from core.ledger.types import ADJUSTMENT_MODULES, LedgerKey, LedgerType, ModuleKey


class AdjustmentHandler(PostingHandler):
    """잔액 조정 Handler

    조정 모듈은 계정별로 결정 (알 수 없는 계정은 recurso_ajuste).
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.ADJUSTMENT

    def _key(self, request: AdjustmentRequest) -> str:
        return self.ctx.registry.resolve_key(request.account)

    def validate(self, request: AdjustmentRequest) -> None:
        key = self._key(request)
        if not key or is_external(key) or not self.ctx.registry.is_known(key):
            raise ValidationError(f"알 수 없는 계정입니다: {key}", field="account")
        if isinstance(request.target_balance_cents, bool) or not isinstance(
            request.target_balance_cents, int
        ):
            raise ValidationError("목표 잔액은 정수(센트)여야 합니다", field="target_balance_cents")
        require_text(request.reason, self.ctx.rules.min_reason_length, "reason", "조정 사유")
        require_date(request.transaction_date)

    def lock_keys(self, request: AdjustmentRequest) -> list[str]:
        return [self._key(request)]

    async def plan(
        self,
        request: AdjustmentRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        key = self._key(request)
        current = await self.balance_before(key, existing)
        delta = request.target_balance_cents - current

        if delta == 0:
            raise BusinessRuleViolation(
                "목표 잔액이 현재 잔액과 같습니다",
                rule="zero_adjustment",
            )

        if delta > 0:
            source, destination = LedgerKey.EXT_INCOME.value, key
        else:
            source, destination = key, LedgerKey.EXT_EXPENSE.value

        module = ADJUSTMENT_MODULES.get(key, ModuleKey.RECURSO_AJUSTE)
        reason = request.reason.strip()

        return [
            self.build(
                request,
                leg="adjustment",
                type=LedgerType.ADJUSTMENT,
                source=source,
                destination=destination,
                amount_cents=abs(delta),
                description=f"Ajuste: {reason}",
                metadata=AdjustmentMetadata(
                    module=module.value,
                    entity_id=self.ctx.registry.entity_of(key),
                    notes=request.notes,
                    reason=reason,
                    previous_balance_cents=current,
                    target_balance_cents=request.target_balance_cents,
                ),
            )
        ]
