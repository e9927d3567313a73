"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증. 금액은 모두 센트 단위 정수.
"""

from pydantic import BaseModel, Field

from core.domain import requests as ops


class OperationBody(BaseModel):
    """요청 공통 필드

    operation_id를 보내면 같은 요청의 재시도로 처리 (이미 기록된 거래는 건너뜀).
    """

    operation_id: str | None = Field(default=None, description="요청 ID (재시도 시 동일 값)")
    created_by: str | None = Field(default=None, description="작성자 ID")
    transaction_date: str | None = Field(default=None, description="업무 일자 (YYYY-MM-DD)")
    notes: str | None = Field(default=None, description="메모")

    def common(self) -> dict:
        data = {
            "created_by": self.created_by,
            "transaction_date": self.transaction_date,
            "notes": self.notes,
        }
        if self.operation_id:
            data["operation_id"] = self.operation_id
        return data


class BatchLineBody(BaseModel):
    """일괄 요청의 한 줄 (검증은 Handler에서 줄 단위로 수행)"""

    amount_cents: int = Field(..., description="금액 (센트)")
    description: str = Field(default="", description="설명")
    transaction_date: str | None = Field(default=None, description="줄별 업무 일자")
    notes: str | None = Field(default=None, description="메모")

    def to_line(self) -> ops.BatchLine:
        return ops.BatchLine(
            amount_cents=self.amount_cents,
            description=self.description,
            transaction_date=self.transaction_date,
            notes=self.notes,
        )


class MonthlyFeeBody(OperationBody):
    shift: str = Field(..., description="matutino | vespertino")
    cash_cents: int = Field(default=0, description="현금 금액 (센트)")
    pix_cents: int = Field(default=0, description="PIX 금액 (센트)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"shift": "matutino", "cash_cents": 15000, "pix_cents": 5000},
            ]
        }
    }

    def to_request(self) -> ops.MonthlyFeeRequest:
        return ops.MonthlyFeeRequest(
            shift=self.shift,
            cash_cents=self.cash_cents,
            pix_cents=self.pix_cents,
            **self.common(),
        )


class AssociationExpenseBody(OperationBody):
    payment_method: str = Field(..., description="cash | pix")
    amount_cents: int
    description: str

    def to_request(self) -> ops.AssociationExpenseRequest:
        return ops.AssociationExpenseRequest(
            payment_method=self.payment_method,
            amount_cents=self.amount_cents,
            description=self.description,
            **self.common(),
        )


class TransferBody(OperationBody):
    source: str = Field(..., description="출발 계정 (키/이름/ID)")
    destination: str = Field(..., description="도착 계정 (키/이름/ID)")
    amount_cents: int
    description: str
    fee_cents: int = Field(default=0, description="수수료 (센트)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "source": "digital_escolaweb",
                    "destination": "pix_bb",
                    "amount_cents": 10000,
                    "fee_cents": 150,
                    "description": "Transferência para BB",
                },
            ]
        }
    }

    def to_request(self) -> ops.TransferRequest:
        return ops.TransferRequest(
            source=self.source,
            destination=self.destination,
            amount_cents=self.amount_cents,
            description=self.description,
            fee_cents=self.fee_cents,
            **self.common(),
        )


class AdjustmentBody(OperationBody):
    account: str
    target_balance_cents: int = Field(..., description="조정 후 목표 잔액 (센트)")
    reason: str

    def to_request(self) -> ops.AdjustmentRequest:
        return ops.AdjustmentRequest(
            account=self.account,
            target_balance_cents=self.target_balance_cents,
            reason=self.reason,
            **self.common(),
        )


class MerchantContributionBody(OperationBody):
    source: str
    merchant_id: str
    amount_cents: int
    description: str
    origin_fund: str | None = Field(default=None, description="ASSOC | UE | CX")
    cost_class: str | None = Field(default=None, description="capital | custeio")

    def to_request(self) -> ops.MerchantContributionRequest:
        return ops.MerchantContributionRequest(
            source=self.source,
            merchant_id=self.merchant_id,
            amount_cents=self.amount_cents,
            description=self.description,
            origin_fund=self.origin_fund,
            cost_class=self.cost_class,
            **self.common(),
        )


class MerchantConsumptionBody(OperationBody):
    merchant_id: str
    lines: list[BatchLineBody]

    def to_request(self) -> ops.MerchantConsumptionRequest:
        return ops.MerchantConsumptionRequest(
            merchant_id=self.merchant_id,
            lines=[line.to_line() for line in self.lines],
            **self.common(),
        )


class ResourceExpenseBody(OperationBody):
    account: str
    lines: list[BatchLineBody]
    merchant_id: str | None = Field(default=None, description="가맹점 ID (없으면 avulso)")
    cost_class: str | None = None

    def to_request(self) -> ops.ResourceExpenseRequest:
        return ops.ResourceExpenseRequest(
            account=self.account,
            lines=[line.to_line() for line in self.lines],
            merchant_id=self.merchant_id,
            cost_class=self.cost_class,
            **self.common(),
        )


class PixFeeBatchBody(OperationBody):
    lines: list[BatchLineBody]

    def to_request(self) -> ops.PixFeeBatchRequest:
        return ops.PixFeeBatchRequest(
            lines=[line.to_line() for line in self.lines],
            **self.common(),
        )


class UnidentifiedPixBody(OperationBody):
    amount_cents: int
    description: str

    def to_request(self) -> ops.UnidentifiedPixRequest:
        return ops.UnidentifiedPixRequest(
            amount_cents=self.amount_cents,
            description=self.description,
            **self.common(),
        )


class ResourceIncomeBody(OperationBody):
    account: str
    amount_cents: int
    description: str
    cost_class: str | None = None

    def to_request(self) -> ops.ResourceIncomeRequest:
        return ops.ResourceIncomeRequest(
            account=self.account,
            amount_cents=self.amount_cents,
            description=self.description,
            cost_class=self.cost_class,
            **self.common(),
        )


class VoidBody(BaseModel):
    """거래 취소 요청"""

    reason: str = Field(..., description="취소 사유 (3자 이상)")
    created_by: str | None = Field(default=None, description="취소자 ID")
    operation_id: str | None = None
