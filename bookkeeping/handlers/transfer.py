"""
계정 간 이동 Handler

source → destination (transfer) 후, 수수료가 있으면 source → ext:expense (fee)
"""

from bookkeeping.handlers.base import (
    PlannedEntry,
    PostingHandler,
    require_date,
    require_non_negative,
    require_positive,
    require_text,
)
from core.domain.errors import BusinessRuleViolation, ValidationError
from core.domain.metadata import FeeMetadata, TransferMetadata
from core.domain.requests import OperationTypes, TransferRequest
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import is_external
from core.ledger.types import LedgerKey, LedgerType, ModuleKey


class TransferHandler(PostingHandler):
    """계정 간 이동 Handler

    - 출발 ≠ 도착, 둘 다 내부 계정
    - 제한 경로: 설정된 출발 계정은 허용된 도착 계정으로만 이동
    - 이동액 + 수수료 ≤ 출발 계정 잔액
    """

    @property
    def operation_type(self) -> str:
        return OperationTypes.TRANSFER

    def _keys(self, request: TransferRequest) -> tuple[str, str]:
        registry = self.ctx.registry
        return registry.resolve_key(request.source), registry.resolve_key(request.destination)

    def validate(self, request: TransferRequest) -> None:
        source, destination = self._keys(request)
        for key, field_name in ((source, "source"), (destination, "destination")):
            if not key or is_external(key) or not self.ctx.registry.is_known(key):
                raise ValidationError(f"알 수 없는 계정입니다: {key}", field=field_name)
        if source == destination:
            raise ValidationError("출발 계정과 도착 계정이 같습니다", field="destination")
        require_positive(request.amount_cents, "amount_cents")
        require_non_negative(request.fee_cents, "fee_cents")
        require_text(
            request.description,
            self.ctx.rules.min_description_length,
            "description",
            "설명",
        )
        require_date(request.transaction_date)

    def lock_keys(self, request: TransferRequest) -> list[str]:
        return list(self._keys(request))

    async def plan(
        self,
        request: TransferRequest,
        existing: dict[str, LedgerTransaction],
    ) -> list[PlannedEntry]:
        source, destination = self._keys(request)
        registry = self.ctx.registry

        allowed = self.ctx.rules.allowed_destinations(source)
        if allowed is not None and destination not in allowed:
            allowed_names = ", ".join(registry.resolve_name(k) for k in allowed)
            raise BusinessRuleViolation(
                f"{registry.resolve_name(source)}은(는) {allowed_names}(으)로만 이동할 수 있습니다",
                rule="restricted_route",
            )

        await self.ensure_funds(source, request.amount_cents + request.fee_cents, existing)

        entity_id = registry.entity_of(source)
        planned = [
            self.build(
                request,
                leg="transfer",
                type=LedgerType.TRANSFER,
                source=source,
                destination=destination,
                amount_cents=request.amount_cents,
                description=request.description.strip(),
                metadata=TransferMetadata(
                    module=ModuleKey.ESPECIE_TRANSFER.value,
                    entity_id=entity_id,
                    notes=request.notes,
                    fee_cents=request.fee_cents or None,
                ),
            )
        ]

        if request.fee_cents > 0:
            principal = existing.get("transfer") or planned[0].entry
            planned.append(
                self.build(
                    request,
                    leg="fee",
                    type=LedgerType.FEE,
                    source=source,
                    destination=LedgerKey.EXT_EXPENSE.value,
                    amount_cents=request.fee_cents,
                    description=(
                        f"Taxa da movimentação: {registry.resolve_name(source)} -> "
                        f"{registry.resolve_name(destination)}"
                    ),
                    metadata=FeeMetadata(
                        module=ModuleKey.CONTA_DIGITAL_TAXA.value,
                        entity_id=entity_id,
                        parent_transaction_id=principal.id,
                    ),
                )
            )
        return planned
