"""
거래 메타데이터

metadata 컬럼(JSON 한 필드)에 저장되는 업무 정보를 module별 dataclass로 표현.
모든 변형은 닫힌 집합이며, 알 수 없는 module은 UnknownMetadata로 원본 그대로 보존.

과거 기록 호환:
    module 키 우선순위: module → modulo → original_module
    shift 별칭: turno
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from core.ledger.types import ModuleKey

# module 키 별칭 (우선순위 순)
MODULE_ALIASES: tuple[str, ...] = ("module", "modulo", "original_module")


@dataclass
class LedgerMetadata:
    """메타데이터 공통 필드"""

    module: str
    entity_id: str | None = None
    notes: str | None = None
    # 기존 transactions 테이블에서 이관된 기록의 원본 ID
    legacy_id: str | None = None
    # 정의되지 않은 키 보존용
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """JSON 저장용 dict (None 값 제외)"""
        data: dict[str, Any] = dict(self.extra)
        for f in dataclasses.fields(self):
            if f.name == "extra":
                continue
            value = getattr(self, f.name)
            if value is not None:
                data[f.name] = value
        return data


@dataclass
class MonthlyFeeMetadata(LedgerMetadata):
    """월회비 (mensalidade, mensalidade_pix)"""

    shift: str | None = None
    payment_method: str | None = None


@dataclass
class ExpenseMetadata(LedgerMetadata):
    """학부모회 지출"""

    payment_method: str | None = None


@dataclass
class TransferMetadata(LedgerMetadata):
    """계정 간 이동"""

    fee_cents: int | None = None


@dataclass
class FeeMetadata(LedgerMetadata):
    """수수료 (이동 수수료, PIX 수수료)"""

    parent_transaction_id: str | None = None


@dataclass
class AdjustmentMetadata(LedgerMetadata):
    """잔액 조정"""

    reason: str | None = None
    previous_balance_cents: int | None = None
    target_balance_cents: int | None = None


@dataclass
class MerchantMetadata(LedgerMetadata):
    """가맹점 잔액 적립/사용"""

    merchant_id: str | None = None
    origin_fund: str | None = None
    cost_class: str | None = None


@dataclass
class ResourceMetadata(LedgerMetadata):
    """UE/CX 자원 계정 지출/입금"""

    account_id: str | None = None
    merchant_id: str | None = None
    is_avulso: bool | None = None
    origin_fund: str | None = None
    cost_class: str | None = None


@dataclass
class IncomeMetadata(LedgerMetadata):
    """미확인 PIX 입금"""

    occurred_at: str | None = None


@dataclass
class UnknownMetadata(LedgerMetadata):
    """알 수 없는 module (원본 보존)"""

    raw: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


METADATA_VARIANTS: dict[str, type[LedgerMetadata]] = {
    ModuleKey.MENSALIDADE.value: MonthlyFeeMetadata,
    ModuleKey.MENSALIDADE_PIX.value: MonthlyFeeMetadata,
    ModuleKey.GASTO_ASSOCIACAO.value: ExpenseMetadata,
    ModuleKey.ESPECIE_TRANSFER.value: TransferMetadata,
    ModuleKey.ASSOC_TRANSFER.value: TransferMetadata,
    ModuleKey.ESPECIE_DEPOSITO_PIX.value: TransferMetadata,
    ModuleKey.CONTA_DIGITAL_TAXA.value: FeeMetadata,
    ModuleKey.TAXA_PIX_BB.value: FeeMetadata,
    ModuleKey.ESPECIE_AJUSTE.value: AdjustmentMetadata,
    ModuleKey.PIX_AJUSTE.value: AdjustmentMetadata,
    ModuleKey.COFRE_AJUSTE.value: AdjustmentMetadata,
    ModuleKey.CONTA_DIGITAL_AJUSTE.value: AdjustmentMetadata,
    ModuleKey.RECURSO_AJUSTE.value: AdjustmentMetadata,
    ModuleKey.APORTE_SALDO.value: MerchantMetadata,
    ModuleKey.CONSUMO_SALDO.value: MerchantMetadata,
    ModuleKey.APORTE_ESTABELECIMENTO_RECURSO.value: MerchantMetadata,
    ModuleKey.PIX_DIRETO_UECX.value: ResourceMetadata,
    ModuleKey.ENTRADA_RECURSO.value: ResourceMetadata,
    ModuleKey.PIX_NAO_IDENTIFICADO.value: IncomeMetadata,
}


def resolve_module(data: dict[str, Any] | None) -> str | None:
    """별칭을 고려하여 module 값 추출 (없으면 None)"""
    if not data:
        return None
    for alias in MODULE_ALIASES:
        value = data.get(alias)
        if value:
            return str(value)
    return None


def parse_metadata(data: dict[str, Any] | None) -> LedgerMetadata:
    """JSON dict → 메타데이터 변형

    Args:
        data: metadata 컬럼 값 (None이면 빈 dict로 간주)

    Returns:
        module에 맞는 변형. 알 수 없는 module은 UnknownMetadata
    """
    data = dict(data or {})
    module = resolve_module(data)
    variant = METADATA_VARIANTS.get(module or "")

    if variant is None:
        return UnknownMetadata(
            module=module or ModuleKey.OUTROS.value,
            entity_id=data.get("entity_id"),
            notes=data.get("notes") or data.get("observation"),
            legacy_id=data.get("legacy_id"),
            raw=data,
        )

    if "shift" not in data and "turno" in data:
        data["shift"] = data.pop("turno")

    known = {f.name for f in dataclasses.fields(variant)} - {"extra", "module"}
    kwargs: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        if key in MODULE_ALIASES:
            continue
        if key in known:
            kwargs[key] = value
        else:
            extra[key] = value

    return variant(module=module, extra=extra, **kwargs)  # type: ignore[arg-type]
