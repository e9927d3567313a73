"""
가맹점 잔액 Handler

- MerchantContributionHandler: 자금 계정 → 가맹점 (transfer, 적립)
- MerchantConsumptionBatchHandler: 가맹점 → ext:expense (expense, 일괄 사용)
"""

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_choice,
    require_date,
    require_positive,
    require_text,
)
from bookkeeping.handlers.batch import BatchHandler
from core.domain.errors import BusinessRuleViolation, ValidationError
from core.domain.metadata import LedgerMetadata, MerchantMetadata
from core.domain.requests import (
    BatchLine,
    MerchantConsumptionRequest,
    MerchantContributionRequest,
    OperationTypes,
)
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import is_external
from core.ledger.types import LedgerType, ModuleKey
from core.types import CostClass, EntityType, FundOrigin


class MerchantContributionHandler(PostingHandler):
    """가맹점 적립 Handler

    학부모회 계정에서 적립하면 aporte_saldo,
    UE/CX 자원 계정에서 적립하면 aporte_estabelecimento_recurso.
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.MERCHANT_CONTRIBUTION

    def _source(self, request: MerchantContributionRequest) -> str:
        return self.ctx.registry.resolve_key(request.source)

    def _merchant(self, request: MerchantContributionRequest) -> str:
        return self.ctx.registry.resolve_key(request.merchant_id)

    def validate(self, request: MerchantContributionRequest) -> None:
        registry = self.ctx.registry
        source = self._source(request)
        merchant = self._merchant(request)

        if not registry.is_merchant(merchant):
            raise ValidationError(f"알 수 없는 가맹점입니다: {request.merchant_id}", field="merchant_id")
        if (
            not source
            or is_external(source)
            or registry.is_merchant(source)
            or not registry.is_known(source)
        ):
            raise ValidationError(f"알 수 없는 자금 계정입니다: {request.source}", field="source")
        require_positive(request.amount_cents, "amount_cents")
        require_text(
            request.description,
            self.ctx.rules.min_description_length,
            "description",
            "설명",
        )
        if request.origin_fund is not None:
            require_choice(request.origin_fund, FundOrigin, "origin_fund")
        if request.cost_class is not None:
            require_choice(request.cost_class, CostClass, "cost_class")
        require_date(request.transaction_date)

    def lock_keys(self, request: MerchantContributionRequest) -> list[str]:
        return [self._source(request), self._merchant(request)]

    async def plan(
        self,
        request: MerchantContributionRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        registry = self.ctx.registry
        source = self._source(request)
        merchant = self._merchant(request)

        if self.ctx.rules.strict_contribution_balance:
            await self.ensure_funds(source, request.amount_cents, existing)

        entity_id = registry.entity_of(source)
        entity_type = registry.entity_type(entity_id)
        origin_fund = request.origin_fund
        if origin_fund is None:
            origin_fund = (
                FundOrigin.ASSOC.value
                if entity_type in (None, EntityType.ASSOCIACAO)
                else entity_type.value.upper()
            )

        module = (
            ModuleKey.APORTE_ESTABELECIMENTO_RECURSO
            if entity_type in (EntityType.UE, EntityType.CX)
            else ModuleKey.APORTE_SALDO
        )

        return [
            self.build(
                request,
                leg="contribution",
                type=LedgerType.TRANSFER,
                source=source,
                destination=merchant,
                amount_cents=request.amount_cents,
                description=request.description.strip(),
                metadata=MerchantMetadata(
                    module=module.value,
                    entity_id=entity_id,
                    notes=request.notes,
                    merchant_id=merchant,
                    origin_fund=origin_fund,
                    cost_class=request.cost_class,
                ),
            )
        ]


class MerchantConsumptionBatchHandler(BatchHandler):
    """가맹점 잔액 일괄 사용 Handler

    유효한 줄 합계가 가맹점 잔액을 넘으면 전체 거부.
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.MERCHANT_CONSUMPTION

    def source_key(self, request: MerchantConsumptionRequest) -> str:
        return self.ctx.registry.resolve_key(request.merchant_id)

    def validate(self, request: MerchantConsumptionRequest) -> None:
        if not self.ctx.registry.is_merchant(self.source_key(request)):
            raise ValidationError(f"알 수 없는 가맹점입니다: {request.merchant_id}", field="merchant_id")
        super().validate(request)

    async def check_rules(
        self,
        request: MerchantConsumptionRequest,
        total_cents: int,
        existing: dict[str, LedgerTransaction],
    ) -> None:
        merchant = self.source_key(request)
        available = await self.balance_before(merchant, existing)
        if total_cents > available:
            raise BusinessRuleViolation(
                f"가맹점 잔액 부족: {self.ctx.registry.resolve_name(merchant)} "
                f"(필요 {total_cents}, 잔액 {available})",
                rule="insufficient_balance",
            )

    def line_metadata(self, request: MerchantConsumptionRequest, line: BatchLine) -> LedgerMetadata:
        merchant = self.source_key(request)
        return MerchantMetadata(
            module=ModuleKey.CONSUMO_SALDO.value,
            entity_id=self.ctx.registry.association_entity_id(),
            notes=line.notes or request.notes,
            merchant_id=merchant,
        )
