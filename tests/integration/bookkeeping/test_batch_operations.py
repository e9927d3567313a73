"""
일괄/가맹점/자원 계정 Handler 통합 테스트
"""

import pytest

from bookkeeping.context import LedgerContext
from bookkeeping.executor import OperationExecutor
from core.domain.requests import (
    BatchLine,
    MerchantConsumptionRequest,
    MerchantContributionRequest,
    PixFeeBatchRequest,
    ResourceExpenseRequest,
    ResourceIncomeRequest,
    UnidentifiedPixRequest,
)
from core.ledger.types import LedgerType
from core.types import ErrorKind


class TestPixFeeBatch:
    """PIX 수수료 일괄"""

    @pytest.mark.asyncio
    async def test_partial_validity(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        """금액 0인 줄은 제외하고 나머지만 기록"""
        result = await executor.execute(
            PixFeeBatchRequest(
                lines=[
                    BatchLine(amount_cents=500, description="Taxa 1"),
                    BatchLine(amount_cents=0, description="Taxa 2"),
                    BatchLine(amount_cents=300, description="Taxa 3", transaction_date="2025-03-02"),
                ],
                transaction_date="2025-03-01",
            )
        )

        assert result.success
        assert result.posted_count == 2
        assert [d.index for d in result.discarded] == [1]
        assert result.touched_balances == {"pix_bb": -800}

        entries = await ctx.store.get_by_operation(result.operation_id)
        assert [e.type for e in entries] == [LedgerType.FEE, LedgerType.FEE]
        assert [e.transaction_date for e in entries] == ["2025-03-01", "2025-03-02"]
        assert {e.module for e in entries} == {"taxa_pix_bb"}

    @pytest.mark.asyncio
    async def test_invalid_line_date_discarded(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        """날짜가 잘못된 줄만 제외하고 나머지는 기록"""
        result = await executor.execute(
            PixFeeBatchRequest(
                lines=[
                    BatchLine(amount_cents=500, description="Taxa 1"),
                    BatchLine(amount_cents=300, description="Taxa 2", transaction_date="2025-13-40"),
                ],
                transaction_date="2025-03-01",
            )
        )

        assert result.success, result.error
        assert result.posted_count == 1
        assert [(d.index, d.reason) for d in result.discarded] == [(1, "transaction_date")]
        assert await ctx.aggregator.balance_of("pix_bb") == -500

    @pytest.mark.asyncio
    async def test_no_valid_lines(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        result = await executor.execute(
            PixFeeBatchRequest(lines=[BatchLine(amount_cents=0, description="Taxa")])
        )
        assert result.error_kind == ErrorKind.VALIDATION
        assert await ctx.store.count() == 0


class TestMerchant:
    """가맹점 적립/사용"""

    @pytest.mark.asyncio
    async def test_contribution_from_association(
        self, executor: OperationExecutor, ctx: LedgerContext, set_balance
    ) -> None:
        await set_balance("cash", 10000)

        result = await executor.execute(
            MerchantContributionRequest(
                source="cash",
                merchant_id="merc-papelaria",
                amount_cents=4000,
                description="Crédito papelaria",
            )
        )

        assert result.success
        assert result.touched_balances == {"cash": 6000, "merc-papelaria": 4000}
        entry = await ctx.store.get(result.entry_ids[0])
        assert entry.type == LedgerType.TRANSFER
        assert entry.module == "aporte_saldo"
        assert entry.metadata.origin_fund == "ASSOC"

    @pytest.mark.asyncio
    async def test_contribution_from_resource(
        self, executor: OperationExecutor, ctx: LedgerContext, set_balance
    ) -> None:
        await set_balance("resource_ue", 10000)

        result = await executor.execute(
            MerchantContributionRequest(
                source="Conta UE",
                merchant_id="Padaria do Bairro",
                amount_cents=2500,
                description="Crédito padaria",
                cost_class="custeio",
            )
        )

        entry = await ctx.store.get(result.entry_ids[0])
        assert entry.destination_account == "merc-padaria"
        assert entry.module == "aporte_estabelecimento_recurso"
        assert entry.metadata.origin_fund == "UE"
        assert entry.metadata.cost_class == "custeio"

    @pytest.mark.asyncio
    async def test_contribution_unknown_merchant(self, executor: OperationExecutor) -> None:
        result = await executor.execute(
            MerchantContributionRequest(
                source="cash", merchant_id="merc-x", amount_cents=100, description="Crédito"
            )
        )
        assert result.error_kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_consumption(self, executor: OperationExecutor, ctx: LedgerContext, set_balance) -> None:
        await set_balance("merc-papelaria", 4000)

        result = await executor.execute(
            MerchantConsumptionRequest(
                merchant_id="merc-papelaria",
                lines=[
                    BatchLine(amount_cents=1500, description="Cadernos"),
                    BatchLine(amount_cents=2000, description="Canetas"),
                ],
            )
        )

        assert result.success
        assert result.touched_balances == {"merc-papelaria": 500}
        entries = await ctx.store.get_by_operation(result.operation_id)
        assert {e.module for e in entries} == {"consumo_saldo"}
        assert all(e.metadata.merchant_id == "merc-papelaria" for e in entries)

    @pytest.mark.asyncio
    async def test_consumption_exceeds_balance(
        self, executor: OperationExecutor, ctx: LedgerContext, set_balance
    ) -> None:
        """유효한 줄 합계가 잔액 초과면 전체 거부"""
        await set_balance("merc-papelaria", 1000)
        count = await ctx.store.count()

        result = await executor.execute(
            MerchantConsumptionRequest(
                merchant_id="merc-papelaria",
                lines=[
                    BatchLine(amount_cents=600, description="Cadernos"),
                    BatchLine(amount_cents=600, description="Canetas"),
                ],
            )
        )

        assert result.rule == "insufficient_balance"
        assert await ctx.store.count() == count


class TestResourceAccounts:
    """UE/CX 자원 계정"""

    @pytest.mark.asyncio
    async def test_expense_without_merchant(
        self, executor: OperationExecutor, ctx: LedgerContext, set_balance
    ) -> None:
        await set_balance("resource_cx", 5000)

        result = await executor.execute(
            ResourceExpenseRequest(
                account="resource_cx",
                lines=[BatchLine(amount_cents=1200, description="Gás de cozinha")],
                cost_class="custeio",
            )
        )

        assert result.success
        entry = await ctx.store.get(result.entry_ids[0])
        assert entry.module == "pix_direto_uecx"
        assert entry.metadata.merchant_id == "avulso"
        assert entry.metadata.is_avulso is True
        assert entry.metadata.origin_fund == "CX"
        assert await ctx.aggregator.balance_of("resource_cx") == 3800

    @pytest.mark.asyncio
    async def test_expense_with_merchant(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        result = await executor.execute(
            ResourceExpenseRequest(
                account="resource_ue",
                merchant_id="Papelaria Central",
                lines=[BatchLine(amount_cents=800, description="Resmas de papel")],
            )
        )

        entry = await ctx.store.get(result.entry_ids[0])
        assert entry.metadata.merchant_id == "merc-papelaria"
        assert entry.metadata.is_avulso is False
        assert entry.source_account == "resource_ue"

    @pytest.mark.asyncio
    async def test_expense_requires_resource_account(self, executor: OperationExecutor) -> None:
        result = await executor.execute(
            ResourceExpenseRequest(
                account="cash",
                lines=[BatchLine(amount_cents=800, description="Resmas de papel")],
            )
        )
        assert result.error_kind == ErrorKind.VALIDATION

    @pytest.mark.asyncio
    async def test_income(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        result = await executor.execute(
            ResourceIncomeRequest(account="resource_ue", amount_cents=50000, description="Repasse PDDE")
        )

        assert result.success
        entry = await ctx.store.get(result.entry_ids[0])
        assert (entry.source_account, entry.destination_account) == ("ext:income", "resource_ue")
        assert entry.module == "entrada_recurso"
        assert entry.metadata.origin_fund == "UE"

    @pytest.mark.asyncio
    async def test_income_requires_resource_account(self, executor: OperationExecutor) -> None:
        result = await executor.execute(
            ResourceIncomeRequest(account="pix_bb", amount_cents=100, description="Repasse")
        )
        assert result.error_kind == ErrorKind.VALIDATION


class TestUnidentifiedPix:
    """입금자 미확인 PIX"""

    @pytest.mark.asyncio
    async def test_income(self, executor: OperationExecutor, ctx: LedgerContext) -> None:
        result = await executor.execute(
            UnidentifiedPixRequest(
                amount_cents=15000,
                description="PIX sem identificação",
                transaction_date="2025-03-12",
            )
        )

        assert result.success
        assert result.touched_balances == {"pix_bb": 15000}
        entry = await ctx.store.get(result.entry_ids[0])
        assert entry.module == "pix_nao_identificado"
        assert entry.metadata.occurred_at == "2025-03-12"
        assert entry.transaction_date == "2025-03-12"
