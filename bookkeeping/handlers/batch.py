"""
일괄 지출 Handler

- ResourceExpenseBatchHandler: UE/CX 자원 계정 → ext:expense (pix_direto_uecx)
- PixFeeBatchHandler: pix_bb → ext:expense (taxa_pix_bb)

줄마다 독립 검증하여 유효한 줄만 순서대로 기록하고 제외된 줄은 결과에 보고.
"""

from abc import abstractmethod
from typing import Any

from bookkeeping.handlers.base import (
    OperationResult,
    PlannedEntry,
    PostingHandler,
    require_choice,
    require_date,
    split_batch_lines,
)
from core.domain.errors import ValidationError
from core.domain.metadata import FeeMetadata, LedgerMetadata, ResourceMetadata
from core.domain.requests import (
    BatchLine,
    OperationTypes,
    PixFeeBatchRequest,
    ResourceExpenseRequest,
)
from core.ledger.entry import LedgerTransaction
from core.ledger.types import LedgerKey, LedgerType, ModuleKey
from core.types import CostClass

AVULSO = "avulso"


class BatchHandler(PostingHandler):
    """일괄 Handler 공통

    하위 클래스는 출발 계정, 거래 유형, 줄별 메타데이터만 정의.
    """

    entry_type: LedgerType = LedgerType.EXPENSE

    @abstractmethod
    def source_key(self, request: Any) -> str:
        pass

    @abstractmethod
    def line_metadata(self, request: Any, line: BatchLine) -> LedgerMetadata:
        pass

    def validate(self, request: Any) -> None:
        valid, _ = split_batch_lines(request.lines, self.ctx.rules.min_description_length)
        if not valid:
            raise ValidationError("유효한 항목이 없습니다", field="lines")
        require_date(request.transaction_date)

    def lock_keys(self, request: Any) -> list[str]:
        return [self.source_key(request)]

    async def execute(self, request: Any) -> OperationResult:
        _, discarded = split_batch_lines(request.lines, self.ctx.rules.min_description_length)
        result = await super().execute(request)
        result.discarded = discarded
        return result

    async def check_rules(
        self,
        request: Any,
        total_cents: int,
        existing: dict[str, LedgerTransaction],
    ) -> None:
        """줄 합계 기준 업무 규칙 (기본: 없음)"""
        return None

    async def plan(
        self,
        request: Any,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        valid, _ = split_batch_lines(request.lines, self.ctx.rules.min_description_length)
        await self.check_rules(request, sum(line.amount_cents for _, line in valid), existing)

        source = self.source_key(request)
        return [
            self.build(
                request,
                leg=f"line-{index}",
                type=self.entry_type,
                source=source,
                destination=LedgerKey.EXT_EXPENSE.value,
                amount_cents=line.amount_cents,
                description=line.description.strip(),
                metadata=self.line_metadata(request, line),
                transaction_date=require_date(line.transaction_date or request.transaction_date),
            )
            for index, line in valid
        ]


class ResourceExpenseBatchHandler(BatchHandler):
    """자원 계정 일괄 지출 Handler

    가맹점 없이 지출하면 merchant_id = "avulso"
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.RESOURCE_EXPENSE

    def source_key(self, request: ResourceExpenseRequest) -> str:
        return self.ctx.registry.resolve_key(request.account)

    def _merchant(self, request: ResourceExpenseRequest) -> str | None:
        if not request.merchant_id or request.merchant_id == AVULSO:
            return None
        return self.ctx.registry.resolve_key(request.merchant_id)

    def validate(self, request: ResourceExpenseRequest) -> None:
        if self.source_key(request) not in self.ctx.registry.resource_keys():
            raise ValidationError(f"자원 계정이 아닙니다: {request.account}", field="account")
        merchant = self._merchant(request)
        if merchant is not None and not self.ctx.registry.is_merchant(merchant):
            raise ValidationError(f"알 수 없는 가맹점입니다: {request.merchant_id}", field="merchant_id")
        if request.cost_class is not None:
            require_choice(request.cost_class, CostClass, "cost_class")
        super().validate(request)

    async def check_rules(
        self,
        request: ResourceExpenseRequest,
        total_cents: int,
        existing: dict[str, LedgerTransaction],
    ) -> None:
        if self.ctx.rules.strict_expense_balance:
            await self.ensure_funds(self.source_key(request), total_cents, existing)

    def line_metadata(self, request: ResourceExpenseRequest, line: BatchLine) -> LedgerMetadata:
        registry = self.ctx.registry
        source = self.source_key(request)
        merchant = self._merchant(request)
        account = registry.account(source)
        entity_id = registry.entity_of(source)
        entity_type = registry.entity_type(entity_id)
        return ResourceMetadata(
            module=ModuleKey.PIX_DIRETO_UECX.value,
            entity_id=entity_id,
            notes=line.notes or request.notes,
            account_id=account.id if account else source,
            merchant_id=merchant or AVULSO,
            is_avulso=merchant is None,
            origin_fund=entity_type.value.upper() if entity_type else None,
            cost_class=request.cost_class,
        )


class PixFeeBatchHandler(BatchHandler):
    """PIX 수수료 일괄 Handler"""

    entry_type = LedgerType.FEE

    @property
    def operation_type(self) -> str:
        return OperationTypes.PIX_FEE_BATCH

    def source_key(self, request: PixFeeBatchRequest) -> str:
        return LedgerKey.PIX_BB.value

    def line_metadata(self, request: PixFeeBatchRequest, line: BatchLine) -> LedgerMetadata:
        return FeeMetadata(
            module=ModuleKey.TAXA_PIX_BB.value,
            entity_id=self.ctx.registry.entity_of(LedgerKey.PIX_BB.value),
            notes=line.notes or request.notes,
        )
