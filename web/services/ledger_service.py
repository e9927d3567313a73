"""
Ledger 조회 서비스

잔액, 표시용 거래 내역, 정합성 검사 조회
"""

import logging
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from bookkeeping.reconciler import IntegrityReconciler, has_errors
from core.config.loader import Settings
from core.ledger.balance import BalanceAggregator
from core.ledger.keys import AccountKeyRegistry
from core.ledger.legacy import LegacyTransactionStore
from core.ledger.normalizer import (
    DemoDataset,
    DemoSourceReader,
    DisplayTransaction,
    TransactionNormalizer,
    cents_to_decimal,
    load_profile_names,
    sort_display,
)
from core.ledger.store import LedgerStore
from core.types import AppMode

logger = logging.getLogger(__name__)


class LedgerService:
    """Ledger 조회 서비스

    쓰기는 하지 않는다. 기록은 OperationExecutor를 거친다.

    Args:
        db: SQLite 어댑터 (읽기 전용)
        settings: 애플리케이션 설정 (데모 모드 판단)
    """

    def __init__(self, db: SQLiteAdapter, settings: Settings):
        self.db = db
        self.settings = settings
        self.store = LedgerStore(db)
        self.aggregator = BalanceAggregator(db, self.store)
        self._registry: AccountKeyRegistry | None = None

    async def registry(self) -> AccountKeyRegistry:
        if self._registry is None:
            self._registry = await AccountKeyRegistry.load(self.db)
        return self._registry

    def _balance_item(self, registry: AccountKeyRegistry, key: str, cents: int) -> dict[str, Any]:
        return {
            "key": key,
            "name": registry.resolve_name(key),
            "balance_cents": cents,
            "balance": cents_to_decimal(cents),
        }

    async def get_balances(self, include_external: bool = False) -> list[dict[str, Any]]:
        """내부 계정 전체 잔액 (기록 없는 계정은 0)"""
        registry = await self.registry()
        cached = await self.aggregator.balances(include_external=include_external)
        keys = set(registry.internal_keys()) | set(cached)
        return [
            self._balance_item(registry, key, cached.get(key, 0))
            for key in sorted(keys)
        ]

    async def get_balance(self, key: str) -> dict[str, Any]:
        registry = await self.registry()
        resolved = registry.resolve_key(key)
        return self._balance_item(registry, resolved, await self.aggregator.balance_of(resolved))

    async def is_known_key(self, key: str) -> bool:
        registry = await self.registry()
        resolved = registry.resolve_key(key)
        return registry.is_known(resolved) or registry.is_external(resolved)

    async def get_transactions(
        self,
        keys: list[str] | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[DisplayTransaction]:
        """표시용 거래 내역 (최신순)

        Ledger 기록과 과거 기록을 합친다. 데모 모드면 데모 데이터셋도 포함.
        잔액 계산에는 쓰지 않는다.
        """
        registry = await self.registry()
        resolved = [registry.resolve_key(k) for k in keys] if keys else None

        entries = [
            entry
            async for entry in self.store.list_by_filter(keys=resolved, start=start, end=end)
        ]

        legacy_ids = None
        if resolved is not None:
            legacy_ids = [
                account.id if (account := registry.account(key)) else key
                for key in resolved
            ]
        legacy_rows = await LegacyTransactionStore(self.db).list_by_filter(
            account_ids=legacy_ids, start=start, end=end
        )

        normalizer = TransactionNormalizer(registry, await load_profile_names(self.db))
        display = normalizer.normalize(entries, legacy_rows)

        if self.settings.mode == AppMode.DEMO and resolved is None:
            dataset = DemoDataset.load(self.settings.app.demo_dataset)
            demo = [
                tx
                for tx in DemoSourceReader(dataset).read()
                if (start is None or tx.transaction_date >= start)
                and (end is None or tx.transaction_date <= end)
            ]
            display = sort_display([*display, *demo])

        logger.debug(
            "거래 내역 조회",
            extra={"ledger": len(entries), "legacy": len(legacy_rows), "total": len(display)},
        )
        return display

    async def get_integrity(self) -> dict[str, Any]:
        """정합성 검사 (읽기 전용)"""
        reconciler = IntegrityReconciler(self.db, self.store, await self.registry())
        checks = await reconciler.reconcile()
        return {
            "has_errors": has_errors(checks),
            "checks": [c.to_dict() for c in checks],
        }
