"""
Operation Handler 모듈

업무 요청 타입별 핸들러
"""

from bookkeeping.handlers.base import (
    DiscardedLine,
    OperationHandler,
    OperationResult,
    PlannedEntry,
    PostingHandler,
)
from bookkeeping.handlers.monthly_fee import MonthlyFeeHandler
from bookkeeping.handlers.expense import AssociationExpenseHandler
from bookkeeping.handlers.transfer import TransferHandler
from bookkeeping.handlers.adjustment import AdjustmentHandler
from bookkeeping.handlers.merchant import (
    MerchantConsumptionBatchHandler,
    MerchantContributionHandler,
)
from bookkeeping.handlers.batch import (
    BatchHandler,
    PixFeeBatchHandler,
    ResourceExpenseBatchHandler,
)
from bookkeeping.handlers.income import ResourceIncomeHandler, UnidentifiedPixHandler
from bookkeeping.handlers.void import VoidHandler

__all__ = [
    "DiscardedLine",
    "OperationHandler",
    "OperationResult",
    "PlannedEntry",
    "PostingHandler",
    "MonthlyFeeHandler",
    "AssociationExpenseHandler",
    "TransferHandler",
    "AdjustmentHandler",
    "MerchantContributionHandler",
    "MerchantConsumptionBatchHandler",
    "BatchHandler",
    "ResourceExpenseBatchHandler",
    "PixFeeBatchHandler",
    "UnidentifiedPixHandler",
    "ResourceIncomeHandler",
    "VoidHandler",
]
