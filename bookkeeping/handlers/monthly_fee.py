"""
월회비 Handler

교대(matutino/vespertino)별 월회비 접수.
현금은 ext:income → cash, PIX는 ext:income → pix_bb.
같은 일자/교대/결제수단의 posted 기록이 있으면 해당 결제수단은 거부.
"""

import logging

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_choice,
    require_date,
    require_non_negative,
)
from core.domain.errors import BusinessRuleViolation, ValidationError
from core.domain.metadata import MonthlyFeeMetadata
from core.domain.requests import MonthlyFeeRequest, OperationTypes
from core.ledger.entry import LedgerTransaction
from core.ledger.types import LedgerKey, LedgerType, ModuleKey
from core.types import PaymentMethod, Shift

logger = logging.getLogger(__name__)

SHIFT_LABELS = {
    Shift.MATUTINO: "Matutino",
    Shift.VESPERTINO: "Vespertino",
}

# 결제수단 → (leg, 모듈, 입금 계정)
_LEGS = (
    ("cash", PaymentMethod.CASH, ModuleKey.MENSALIDADE, LedgerKey.CASH),
    ("pix", PaymentMethod.PIX, ModuleKey.MENSALIDADE_PIX, LedgerKey.PIX_BB),
)


class MonthlyFeeHandler(PostingHandler):
    """월회비 접수 Handler"""

    @property
    def operation_type(self) -> str:
        return OperationTypes.MONTHLY_FEE

    def validate(self, request: MonthlyFeeRequest) -> None:
        require_choice(request.shift, Shift, "shift")
        require_non_negative(request.cash_cents, "cash_cents")
        require_non_negative(request.pix_cents, "pix_cents")
        if request.cash_cents == 0 and request.pix_cents == 0:
            raise ValidationError("현금 또는 PIX 금액이 필요합니다", field="cash_cents")
        require_date(request.transaction_date)

    def lock_keys(self, request: MonthlyFeeRequest) -> list[str]:
        return [LedgerKey.CASH.value, LedgerKey.PIX_BB.value]

    async def plan(
        self,
        request: MonthlyFeeRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        shift = Shift(request.shift)
        transaction_date = require_date(request.transaction_date)
        amounts = {"cash": request.cash_cents, "pix": request.pix_cents}

        planned: list[PlannedEntry] = []
        for leg, method, module, key in _LEGS:
            amount = amounts[leg]
            if amount == 0:
                continue

            if leg not in existing and await self.ctx.store.exists_for(
                module.value,
                transaction_date,
                shift.value,
                exclude_operation_id=request.operation_id,
            ):
                raise BusinessRuleViolation(
                    f"이미 접수된 월회비입니다: {transaction_date} {SHIFT_LABELS[shift]} ({method.value})",
                    rule="duplicate_monthly_fee",
                )

            planned.append(
                self.build(
                    request,
                    leg=leg,
                    type=LedgerType.INCOME,
                    source=LedgerKey.EXT_INCOME.value,
                    destination=key.value,
                    amount_cents=amount,
                    description=f"Mensalidade {SHIFT_LABELS[shift]} ({method.value.upper()})",
                    metadata=MonthlyFeeMetadata(
                        module=module.value,
                        entity_id=self.ctx.registry.entity_of(key.value),
                        notes=request.notes,
                        shift=shift.value,
                        payment_method=method.value,
                    ),
                    transaction_date=transaction_date,
                )
            )
        return planned
