"""
Reconciler 모듈

원본 거래 로그와 잔액 캐시 비교
"""

from bookkeeping.reconciler.reconciler import (
    IntegrityCheck,
    IntegrityMismatch,
    IntegrityReconciler,
    has_errors,
    mismatches,
)

__all__ = [
    "IntegrityCheck",
    "IntegrityMismatch",
    "IntegrityReconciler",
    "has_errors",
    "mismatches",
]
