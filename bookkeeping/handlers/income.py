"""
입금 Handler

- UnidentifiedPixHandler: 입금자 미확인 PIX (ext:income → pix_bb)
- ResourceIncomeHandler: UE/CX 자원 계정 입금 (ext:income → 자원 계정)
"""

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_choice,
    require_date,
    require_positive,
    require_text,
)
from core.domain.errors import ValidationError
from core.domain.metadata import IncomeMetadata, ResourceMetadata
from core.domain.requests import (
    OperationTypes,
    ResourceIncomeRequest,
    UnidentifiedPixRequest,
)
from core.ledger.entry import LedgerTransaction
from core.ledger.types import LedgerKey, LedgerType, ModuleKey
from core.types import CostClass


class UnidentifiedPixHandler(PostingHandler):
    """미확인 PIX 입금 Handler"""

    @property
    def operation_type(self) -> str:
        return OperationTypes.UNIDENTIFIED_PIX

    def validate(self, request: UnidentifiedPixRequest) -> None:
        require_positive(request.amount_cents, "amount_cents")
        require_text(
            request.description,
            self.ctx.rules.min_description_length,
            "description",
            "설명",
        )
        require_date(request.transaction_date)

    def lock_keys(self, request: UnidentifiedPixRequest) -> list[str]:
        return [LedgerKey.PIX_BB.value]

    async def plan(
        self,
        request: UnidentifiedPixRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        transaction_date = require_date(request.transaction_date)
        return [
            self.build(
                request,
                leg="income",
                type=LedgerType.INCOME,
                source=LedgerKey.EXT_INCOME.value,
                destination=LedgerKey.PIX_BB.value,
                amount_cents=request.amount_cents,
                description=request.description.strip(),
                metadata=IncomeMetadata(
                    module=ModuleKey.PIX_NAO_IDENTIFICADO.value,
                    entity_id=self.ctx.registry.entity_of(LedgerKey.PIX_BB.value),
                    notes=request.notes,
                    occurred_at=transaction_date,
                ),
                transaction_date=transaction_date,
            )
        ]


class ResourceIncomeHandler(PostingHandler):
    """자원 계정 입금 Handler"""

    @property
    def operation_type(self) -> str:
        return OperationTypes.RESOURCE_INCOME

    def _key(self, request: ResourceIncomeRequest) -> str:
        return self.ctx.registry.resolve_key(request.account)

    def validate(self, request: ResourceIncomeRequest) -> None:
        if self._key(request) not in self.ctx.registry.resource_keys():
            raise ValidationError(f"자원 계정이 아닙니다: {request.account}", field="account")
        require_positive(request.amount_cents, "amount_cents")
        require_text(
            request.description,
            self.ctx.rules.min_description_length,
            "description",
            "설명",
        )
        if request.cost_class is not None:
            require_choice(request.cost_class, CostClass, "cost_class")
        require_date(request.transaction_date)

    def lock_keys(self, request: ResourceIncomeRequest) -> list[str]:
        return [self._key(request)]

    async def plan(
        self,
        request: ResourceIncomeRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        registry = self.ctx.registry
        key = self._key(request)
        account = registry.account(key)
        entity_id = registry.entity_of(key)
        entity_type = registry.entity_type(entity_id)

        return [
            self.build(
                request,
                leg="income",
                type=LedgerType.INCOME,
                source=LedgerKey.EXT_INCOME.value,
                destination=key,
                amount_cents=request.amount_cents,
                description=request.description.strip(),
                metadata=ResourceMetadata(
                    module=ModuleKey.ENTRADA_RECURSO.value,
                    entity_id=entity_id,
                    notes=request.notes,
                    account_id=account.id if account else key,
                    origin_fund=entity_type.value.upper() if entity_type else None,
                    cost_class=request.cost_class,
                ),
            )
        ]
