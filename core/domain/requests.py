"""
업무 요청 도메인 모델

화면/API에서 들어오는 모든 기록 요청은 요청 객체로 표현됨.
요청마다 operation_id를 가지며, 같은 operation_id로 재요청하면
이미 기록된 거래는 다시 쓰지 않는다.
"""

from dataclasses import dataclass, field
from typing import ClassVar

from core.utils.idempotency import make_operation_id


class OperationTypes:
    """업무 요청 타입 상수"""

    MONTHLY_FEE = "MonthlyFee"
    ASSOCIATION_EXPENSE = "AssociationExpense"
    TRANSFER = "Transfer"
    ADJUSTMENT = "Adjustment"
    MERCHANT_CONTRIBUTION = "MerchantContribution"
    MERCHANT_CONSUMPTION = "MerchantConsumption"
    RESOURCE_EXPENSE = "ResourceExpense"
    PIX_FEE_BATCH = "PixFeeBatch"
    UNIDENTIFIED_PIX = "UnidentifiedPix"
    RESOURCE_INCOME = "ResourceIncome"
    VOID = "Void"


@dataclass(kw_only=True)
class OperationRequest:
    """요청 공통 필드"""

    operation_type: ClassVar[str] = ""

    operation_id: str = field(default_factory=make_operation_id)
    created_by: str | None = None
    # 업무 일자 (YYYY-MM-DD, 없으면 오늘)
    transaction_date: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class BatchLine:
    """일괄 요청의 한 줄"""

    amount_cents: int
    description: str
    transaction_date: str | None = None
    notes: str | None = None


@dataclass(kw_only=True)
class MonthlyFeeRequest(OperationRequest):
    """월회비 접수 (현금/PIX 동시 가능)"""

    operation_type: ClassVar[str] = OperationTypes.MONTHLY_FEE

    shift: str
    cash_cents: int = 0
    pix_cents: int = 0


@dataclass(kw_only=True)
class AssociationExpenseRequest(OperationRequest):
    """학부모회 지출"""

    operation_type: ClassVar[str] = OperationTypes.ASSOCIATION_EXPENSE

    payment_method: str
    amount_cents: int
    description: str


@dataclass(kw_only=True)
class TransferRequest(OperationRequest):
    """학부모회 계정 간 이동 (수수료 선택)"""

    operation_type: ClassVar[str] = OperationTypes.TRANSFER

    source: str
    destination: str
    amount_cents: int
    description: str
    fee_cents: int = 0


@dataclass(kw_only=True)
class AdjustmentRequest(OperationRequest):
    """잔액 조정 (목표 잔액 입력)"""

    operation_type: ClassVar[str] = OperationTypes.ADJUSTMENT

    account: str
    target_balance_cents: int
    reason: str


@dataclass(kw_only=True)
class MerchantContributionRequest(OperationRequest):
    """가맹점 잔액 적립 (aporte)"""

    operation_type: ClassVar[str] = OperationTypes.MERCHANT_CONTRIBUTION

    source: str
    merchant_id: str
    amount_cents: int
    description: str
    origin_fund: str | None = None
    cost_class: str | None = None


@dataclass(kw_only=True)
class MerchantConsumptionRequest(OperationRequest):
    """가맹점 잔액 사용 (일괄)"""

    operation_type: ClassVar[str] = OperationTypes.MERCHANT_CONSUMPTION

    merchant_id: str
    lines: list[BatchLine]


@dataclass(kw_only=True)
class ResourceExpenseRequest(OperationRequest):
    """UE/CX 자원 계정 지출 (일괄)

    merchant_id가 없으면 가맹점 없는 지출(avulso)
    """

    operation_type: ClassVar[str] = OperationTypes.RESOURCE_EXPENSE

    account: str
    lines: list[BatchLine]
    merchant_id: str | None = None
    cost_class: str | None = None


@dataclass(kw_only=True)
class PixFeeBatchRequest(OperationRequest):
    """PIX 수수료 (일괄)"""

    operation_type: ClassVar[str] = OperationTypes.PIX_FEE_BATCH

    lines: list[BatchLine]


@dataclass(kw_only=True)
class UnidentifiedPixRequest(OperationRequest):
    """입금자 미확인 PIX"""

    operation_type: ClassVar[str] = OperationTypes.UNIDENTIFIED_PIX

    amount_cents: int
    description: str


@dataclass(kw_only=True)
class ResourceIncomeRequest(OperationRequest):
    """자원 계정 입금"""

    operation_type: ClassVar[str] = OperationTypes.RESOURCE_INCOME

    account: str
    amount_cents: int
    description: str
    cost_class: str | None = None


@dataclass(kw_only=True)
class VoidRequest(OperationRequest):
    """거래 취소"""

    operation_type: ClassVar[str] = OperationTypes.VOID

    transaction_id: str
    reason: str
