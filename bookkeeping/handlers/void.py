"""
거래 취소 Handler

LedgerStore.void 위임. 취소 사유와 행위자를 감사 기록에 남긴다.
"""

import logging

from bookkeeping.handlers.base import OperationHandler, OperationResult, require_text
from core.constants import Defaults
from core.domain.errors import LedgerError, NotFoundError, ValidationError
from core.domain.requests import OperationTypes, VoidRequest
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import is_external

logger = logging.getLogger(__name__)


class VoidHandler(OperationHandler):
    """거래 취소 Handler

    새 거래를 쓰지 않으므로 기록 계획 없이 대상 거래의 내부 계정만 잠근다.
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.VOID

    def validate(self, request: VoidRequest) -> None:
        if not request.transaction_id:
            raise ValidationError("거래 ID가 필요합니다", field="transaction_id")
        require_text(request.reason, self.ctx.rules.min_reason_length, "reason", "취소 사유")

    def lock_keys(self, entry: LedgerTransaction) -> list[str]:
        """대상 거래의 내부 계정 키"""
        return [
            k
            for k in (entry.source_account, entry.destination_account)
            if k and not is_external(k)
        ]

    async def execute(self, request: VoidRequest) -> OperationResult:
        try:
            self.validate(request)
            entry = await self.ctx.store.get(request.transaction_id)
            if entry is None:
                raise NotFoundError(
                    f"거래를 찾을 수 없습니다: {request.transaction_id}",
                    entity_id=request.transaction_id,
                )
            keys = self.lock_keys(entry)
            async with self.ctx.locks.hold(keys):
                await self.ctx.store.void(
                    request.transaction_id,
                    request.reason,
                    request.created_by or Defaults.CREATED_BY_SYSTEM,
                )
                touched = await self.ctx.aggregator.balances(sorted(keys))
        except LedgerError as e:
            return self.failed(request, e)

        logger.info(
            "거래 취소 완료",
            extra={"transaction_id": request.transaction_id, "operation_id": request.operation_id},
        )
        return OperationResult(
            success=True,
            operation_id=request.operation_id,
            entry_ids=[request.transaction_id],
            posted_count=1,
            total_count=1,
            touched_balances=touched,
        )
