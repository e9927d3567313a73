"""
학부모회 지출 Handler

결제수단에 따라 cash 또는 pix_bb → ext:expense
"""

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_choice,
    require_date,
    require_positive,
    require_text,
)
from core.domain.metadata import ExpenseMetadata
from core.domain.requests import AssociationExpenseRequest, OperationTypes
from core.ledger.entry import LedgerTransaction
from core.ledger.types import LedgerKey, LedgerType, ModuleKey
from core.types import PaymentMethod

PAYMENT_ACCOUNTS = {
    PaymentMethod.CASH: LedgerKey.CASH.value,
    PaymentMethod.PIX: LedgerKey.PIX_BB.value,
}


class AssociationExpenseHandler(PostingHandler):
    """학부모회 지출 Handler

    strict_expense_balance 설정 시 잔액 초과 지출 거부.
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.ASSOCIATION_EXPENSE

    def validate(self, request: AssociationExpenseRequest) -> None:
        require_choice(request.payment_method, PaymentMethod, "payment_method")
        require_positive(request.amount_cents, "amount_cents")
        require_text(
            request.description,
            self.ctx.rules.min_description_length,
            "description",
            "설명",
        )
        require_date(request.transaction_date)

    def lock_keys(self, request: AssociationExpenseRequest) -> list[str]:
        return [PAYMENT_ACCOUNTS[PaymentMethod(request.payment_method)]]

    async def plan(
        self,
        request: AssociationExpenseRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        method = PaymentMethod(request.payment_method)
        source = PAYMENT_ACCOUNTS[method]

        if self.ctx.rules.strict_expense_balance:
            await self.ensure_funds(source, request.amount_cents, existing)

        return [
            self.build(
                request,
                leg="expense",
                type=LedgerType.EXPENSE,
                source=source,
                destination=LedgerKey.EXT_EXPENSE.value,
                amount_cents=request.amount_cents,
                description=request.description.strip(),
                metadata=ExpenseMetadata(
                    module=ModuleKey.GASTO_ASSOCIACAO.value,
                    entity_id=self.ctx.registry.entity_of(source),
                    notes=request.notes,
                    payment_method=method.value,
                ),
            )
        ]
