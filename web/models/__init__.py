"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AdjustmentBody,
    AssociationExpenseBody,
    BatchLineBody,
    MerchantConsumptionBody,
    MerchantContributionBody,
    MonthlyFeeBody,
    OperationBody,
    PixFeeBatchBody,
    ResourceExpenseBody,
    ResourceIncomeBody,
    TransferBody,
    UnidentifiedPixBody,
    VoidBody,
)
from web.models.responses import (
    BalanceListResponse,
    BalanceResponse,
    DiscardedLineResponse,
    HealthResponse,
    IntegrityCheckResponse,
    IntegrityResponse,
    OperationResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Requests
    "OperationBody",
    "BatchLineBody",
    "MonthlyFeeBody",
    "AssociationExpenseBody",
    "TransferBody",
    "AdjustmentBody",
    "MerchantContributionBody",
    "MerchantConsumptionBody",
    "ResourceExpenseBody",
    "PixFeeBatchBody",
    "UnidentifiedPixBody",
    "ResourceIncomeBody",
    "VoidBody",
    # Responses
    "HealthResponse",
    "BalanceResponse",
    "BalanceListResponse",
    "TransactionResponse",
    "TransactionListResponse",
    "IntegrityCheckResponse",
    "IntegrityResponse",
    "DiscardedLineResponse",
    "OperationResponse",
]
