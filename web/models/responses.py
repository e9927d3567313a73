"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    mode: str = Field(..., description="실행 모드 (production/demo)")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class BalanceResponse(BaseModel):
    """계정 잔액 응답"""

    key: str = Field(..., description="Ledger 키")
    name: str = Field(..., description="계정 이름")
    balance_cents: int = Field(..., description="잔액 (센트)")
    balance: Decimal = Field(..., description="잔액 (표시용)")


class BalanceListResponse(BaseModel):
    balances: list[BalanceResponse] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    """표시용 거래 응답 (ledger/legacy/demo 공통)"""

    id: str
    origin: str = Field(..., description="ledger | legacy | demo")
    transaction_date: str
    created_at: datetime
    module: str
    module_label: str
    amount_cents: int
    amount: Decimal
    direction: str = Field(..., description="in | out | transfer")
    description: str
    status: str
    created_by: str | None = None
    creator_name: str | None = None
    source_account_name: str | None = None
    destination_account_name: str | None = None
    notes: str | None = None
    merchant_id: str | None = None
    merchant_name: str | None = None
    entity_id: str | None = None
    entity_name: str | None = None
    entity_type: str | None = None
    payment_method: str | None = None
    shift: str | None = None
    origin_fund: str | None = None
    parent_transaction_id: str | None = None


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse] = Field(default_factory=list)
    total: int = Field(..., description="전체 건수")


class IntegrityCheckResponse(BaseModel):
    """계정별 정합성 검사 결과"""

    key: str
    name: str
    cached_balance: int
    recomputed_balance: int
    difference: int
    status: str = Field(..., description="ok | error")
    transaction_count: int


class IntegrityResponse(BaseModel):
    has_errors: bool
    checks: list[IntegrityCheckResponse] = Field(default_factory=list)


class DiscardedLineResponse(BaseModel):
    index: int = Field(..., description="요청 내 줄 번호 (0부터)")
    reason: str = Field(..., description="amount | description")


class OperationResponse(BaseModel):
    """업무 요청 처리 결과"""

    success: bool
    operation_id: str = Field(..., description="재시도 시 같은 값을 보내면 누락분만 기록")
    entry_ids: list[str] = Field(default_factory=list)
    posted_count: int = 0
    total_count: int = 0
    touched_balances: dict[str, int] = Field(default_factory=dict)
    error: str | None = None
    error_kind: str | None = None
    rule: str | None = None
    replayed: bool = False
    discarded: list[DiscardedLineResponse] = Field(default_factory=list)
