"""
업무 처리 컨텍스트

Handler들이 공유하는 저장소/잔액 조회/키 레지스트리/규칙/잠금 묶음
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.config.loader import LedgerRules
from core.ledger.balance import BalanceAggregator
from core.ledger.keys import AccountKeyRegistry
from core.ledger.store import LedgerStore
from core.utils.key_lock import KeyLocks

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter


@dataclass
class LedgerContext:
    """Handler 의존성 묶음"""

    store: LedgerStore
    aggregator: BalanceAggregator
    registry: AccountKeyRegistry
    rules: LedgerRules = field(default_factory=LedgerRules)
    locks: KeyLocks = field(default_factory=KeyLocks)

    @classmethod
    async def create(
        cls,
        db: SQLiteAdapter,
        rules: LedgerRules | None = None,
        locks: KeyLocks | None = None,
    ) -> LedgerContext:
        """DB에서 레지스트리를 로드하여 컨텍스트 생성"""
        rules = rules or LedgerRules()
        store = LedgerStore(db, min_reason_length=rules.min_reason_length)
        return cls(
            store=store,
            aggregator=BalanceAggregator(db, store),
            registry=await AccountKeyRegistry.load(db),
            rules=rules,
            locks=locks or KeyLocks(),
        )
