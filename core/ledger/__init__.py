"""
Ledger (추가 전용 거래 로그) 시스템

모든 자금 이동을 source → destination 한 행으로 기록하고
잔액은 posted 기록에서만 계산한다.

사용 예시:
```python
from core.ledger import LedgerStore, BalanceAggregator

store = LedgerStore(db)
aggregator = BalanceAggregator(db, store)

await store.append(entry)
balance = await aggregator.balance_of("cash")
```
"""

from core.ledger.types import (
    ACCOUNT_NAMES,
    EXTERNAL_PREFIX,
    MODULE_LABELS,
    LedgerKey,
    LedgerStatus,
    LedgerType,
    ModuleKey,
)
from core.ledger.entry import AuditRecord, LedgerTransaction
from core.ledger.store import LedgerStore
from core.ledger.balance import BalanceAggregator, compute_balances
from core.ledger.keys import AccountKeyRegistry, is_external

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "BalanceAggregator",
    "AccountKeyRegistry",
    "LedgerTransaction",
    "AuditRecord",
    # 함수
    "compute_balances",
    "is_external",
    # Enum
    "LedgerType",
    "LedgerStatus",
    "LedgerKey",
    "ModuleKey",
    # 상수
    "ACCOUNT_NAMES",
    "EXTERNAL_PREFIX",
    "MODULE_LABELS",
]
