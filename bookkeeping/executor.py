"""
Operation Executor

업무 요청을 실행하고 결과 반환.
요청 타입별 Handler를 등록하여 실행 위임.
"""

import logging
from typing import Any

from bookkeeping.context import LedgerContext
from bookkeeping.handlers import (
    AdjustmentHandler,
    AssociationExpenseHandler,
    MerchantConsumptionBatchHandler,
    MerchantContributionHandler,
    MonthlyFeeHandler,
    OperationHandler,
    OperationResult,
    PixFeeBatchHandler,
    ResourceExpenseBatchHandler,
    ResourceIncomeHandler,
    TransferHandler,
    UnidentifiedPixHandler,
    VoidHandler,
)
from core.domain.requests import OperationRequest
from core.types import ErrorKind

logger = logging.getLogger(__name__)


class OperationExecutor:
    """Operation Executor

    요청 타입별 핸들러를 등록하고 실행.

    Args:
        ctx: 업무 처리 컨텍스트

    사용 예시:
    ```python
    ctx = await LedgerContext.create(db, rules=settings.rules)
    executor = OperationExecutor(ctx)

    result = await executor.execute(TransferRequest(...))
    ```
    """

    def __init__(self, ctx: LedgerContext):
        self.ctx = ctx

        # 핸들러 레지스트리
        self._handlers: dict[str, OperationHandler] = {}

        self._register_default_handlers()

        # 통계
        self._execute_count = 0
        self._success_count = 0
        self._failed_count = 0

    def _register_default_handlers(self) -> None:
        for handler_cls in (
            MonthlyFeeHandler,
            AssociationExpenseHandler,
            TransferHandler,
            AdjustmentHandler,
            MerchantContributionHandler,
            MerchantConsumptionBatchHandler,
            ResourceExpenseBatchHandler,
            PixFeeBatchHandler,
            UnidentifiedPixHandler,
            ResourceIncomeHandler,
            VoidHandler,
        ):
            self.register_handler(handler_cls(self.ctx))

    def register_handler(self, handler: OperationHandler) -> None:
        """핸들러 등록 (같은 타입이면 교체)"""
        self._handlers[handler.operation_type] = handler
        logger.debug(f"Handler registered: {handler.operation_type}")

    def get_handler(self, operation_type: str) -> OperationHandler | None:
        """핸들러 조회"""
        return self._handlers.get(operation_type)

    async def execute(self, request: OperationRequest) -> OperationResult:
        """요청 실행

        업무 오류(LedgerError)는 Handler에서 실패 결과로 변환된다.
        그 밖의 예외는 실패로 집계한 뒤 그대로 전파.
        """
        self._execute_count += 1

        handler = self._handlers.get(request.operation_type)
        if handler is None:
            self._failed_count += 1
            logger.error(f"No handler for operation type: {request.operation_type}")
            return OperationResult(
                success=False,
                operation_id=request.operation_id,
                error=f"지원하지 않는 요청 타입입니다: {request.operation_type}",
                error_kind=ErrorKind.VALIDATION,
            )

        try:
            result = await handler.execute(request)
        except Exception:
            self._failed_count += 1
            logger.exception(
                f"Operation execution error: {request.operation_type}",
                extra={"operation_id": request.operation_id},
            )
            raise

        if result.success:
            self._success_count += 1
        else:
            self._failed_count += 1
            logger.warning(
                f"Operation failed: {request.operation_type}",
                extra={
                    "operation_id": request.operation_id,
                    "error": result.error,
                    "posted": result.summary,
                },
            )
        return result

    @property
    def supported_operations(self) -> list[str]:
        """지원하는 요청 타입 목록"""
        return list(self._handlers.keys())

    def get_stats(self) -> dict[str, Any]:
        """통계 반환"""
        return {
            "execute_count": self._execute_count,
            "success_count": self._success_count,
            "failed_count": self._failed_count,
            "supported_operations": self.supported_operations,
        }

    def reset_stats(self) -> None:
        """통계 초기화"""
        self._execute_count = 0
        self._success_count = 0
        self._failed_count = 0
