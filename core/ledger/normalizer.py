"""
거래 표시 변환

Ledger 기록, 과거 transactions 기록, 데모 데이터를 하나의 표시 형식(DisplayTransaction)으로 변환.
입력을 바꾸지 않는 순수 변환이며 같은 입력이면 같은 순서의 결과를 낸다.

정렬: transaction_date desc → created_at desc → id desc
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from core.domain.metadata import resolve_module
from core.ledger.entry import LedgerTransaction
from core.ledger.keys import AccountKeyRegistry, is_external
from core.ledger.legacy import LegacyTransaction
from core.ledger.types import LedgerType, ModuleKey, module_label
from core.types import Direction
from core.utils.timezone import business_noon_utc

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

SYSTEM_CREATOR_NAME = "Sistema"
DEMO_CREATOR_NAME = "Usuário Demo"

_CENT = Decimal("0.01")


def cents_to_decimal(cents: int) -> Decimal:
    """센트 → 표시용 Decimal (소수 2자리)"""
    return (Decimal(cents) / 100).quantize(_CENT)


def _parse_timestamp(value: str | datetime | None) -> datetime:
    """ISO 문자열/datetime → UTC aware datetime (비교용)"""
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class DisplayTransaction:
    """표시용 거래 (출처 무관 공통 형식)"""

    id: str
    origin: str  # ledger | legacy | demo
    transaction_date: str
    created_at: datetime
    module: str
    module_label: str
    amount_cents: int
    amount: Decimal
    direction: Direction
    description: str
    status: str
    created_by: str | None
    creator_name: str | None
    source_account_name: str | None
    destination_account_name: str | None
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

    def sort_key(self) -> tuple[str, datetime, str]:
        return (self.transaction_date, self.created_at, self.id)


def sort_display(transactions: Iterable[DisplayTransaction]) -> list[DisplayTransaction]:
    """최신순 정렬 (동률 없는 전순서)"""
    return sorted(transactions, key=DisplayTransaction.sort_key, reverse=True)


def ledger_direction(entry: LedgerTransaction) -> Direction:
    """Ledger 유형 → 표시 방향

    조정은 외부에서 들어온 경우(출발이 ext:) 유입, 그 외 유출.
    """
    if entry.type == LedgerType.INCOME:
        return Direction.IN
    if entry.type in (LedgerType.EXPENSE, LedgerType.FEE):
        return Direction.OUT
    if entry.type == LedgerType.TRANSFER:
        return Direction.TRANSFER
    return Direction.IN if is_external(entry.source_account) else Direction.OUT


async def load_profile_names(db: SQLiteAdapter) -> dict[str, str]:
    """사용자 ID → 이름"""
    rows = await db.fetchall("SELECT id, name FROM profile")
    return {row[0]: row[1] for row in rows}


class LedgerSourceReader:
    """Ledger 기록 변환

    Args:
        registry: 계정 키 레지스트리
        profiles: 사용자 ID → 이름
    """

    def __init__(self, registry: AccountKeyRegistry, profiles: dict[str, str] | None = None):
        self.registry = registry
        self.profiles = profiles or {}

    def _account_names(self, entry: LedgerTransaction) -> tuple[str, str]:
        source_name = self.registry.resolve_name(entry.source_account)
        dest_name = self.registry.resolve_name(entry.destination_account)

        # 한쪽이 외부 계정이면 두 칸 모두 내부 계정 이름 표시
        if is_external(entry.source_account) and entry.destination_account:
            source_name = dest_name
        elif is_external(entry.destination_account):
            dest_name = source_name
        return source_name, dest_name

    def _entity_id(self, entry: LedgerTransaction, raw: dict[str, Any]) -> str | None:
        return (
            raw.get("entity_id")
            or self.registry.entity_of(entry.source_account)
            or self.registry.entity_of(entry.destination_account)
        )

    def _merchant_id(self, entry: LedgerTransaction, raw: dict[str, Any]) -> str | None:
        if raw.get("merchant_id"):
            return str(raw["merchant_id"])
        for key in (entry.destination_account, entry.source_account):
            if key and self.registry.is_merchant(key):
                return key
        return None

    def to_display(self, entry: LedgerTransaction) -> DisplayTransaction:
        raw = entry.metadata.to_dict()
        module = resolve_module(raw) or ModuleKey.OUTROS.value
        entity_id = self._entity_id(entry, raw)
        entity_type = self.registry.entity_type(entity_id)
        merchant_id = self._merchant_id(entry, raw)
        source_name, dest_name = self._account_names(entry)

        origin_fund = raw.get("origin_fund")
        if not origin_fund and entity_type is not None:
            origin_fund = entity_type.value.upper()

        return DisplayTransaction(
            id=entry.id,
            origin="ledger",
            transaction_date=entry.transaction_date,
            created_at=_parse_timestamp(entry.created_at),
            module=module,
            module_label=module_label(module),
            amount_cents=entry.amount_cents,
            amount=cents_to_decimal(entry.amount_cents),
            direction=ledger_direction(entry),
            description=entry.description,
            status=entry.status.value,
            created_by=entry.created_by,
            creator_name=self.profiles.get(entry.created_by) or SYSTEM_CREATOR_NAME,
            source_account_name=source_name,
            destination_account_name=dest_name,
            notes=raw.get("notes"),
            merchant_id=merchant_id,
            merchant_name=self.registry.merchant_name(merchant_id),
            entity_id=entity_id,
            entity_name=self.registry.entity_name(entity_id),
            entity_type=entity_type.value if entity_type else None,
            payment_method=raw.get("payment_method"),
            shift=raw.get("shift") or raw.get("turno"),
            origin_fund=origin_fund,
            parent_transaction_id=raw.get("parent_transaction_id"),
        )

    def read(self, entries: Iterable[LedgerTransaction]) -> list[DisplayTransaction]:
        return [self.to_display(entry) for entry in entries]


class LegacySourceReader:
    """과거 transactions 기록 변환 (필드 직접 대응)"""

    def __init__(self, registry: AccountKeyRegistry, profiles: dict[str, str] | None = None):
        self.registry = registry
        self.profiles = profiles or {}

    def _account_name(self, account_id: str | None) -> str | None:
        if not account_id:
            return None
        account = self.registry.account(account_id)
        if account is not None:
            return account.name
        return self.registry.merchant_name(account_id)

    def to_display(self, row: LegacyTransaction) -> DisplayTransaction:
        entity_type = self.registry.entity_type(row.entity_id)
        return DisplayTransaction(
            id=row.id,
            origin="legacy",
            transaction_date=row.transaction_date,
            created_at=_parse_timestamp(row.created_at),
            module=row.module,
            module_label=module_label(row.module),
            amount_cents=row.amount_cents,
            amount=cents_to_decimal(row.amount_cents),
            direction=Direction(row.direction),
            description=row.description or "",
            status=row.status,
            created_by=row.created_by,
            creator_name=self.profiles.get(row.created_by or ""),
            source_account_name=self._account_name(row.source_account_id),
            destination_account_name=self._account_name(row.destination_account_id),
            notes=row.notes,
            merchant_id=row.merchant_id,
            merchant_name=self.registry.merchant_name(row.merchant_id),
            entity_id=row.entity_id,
            entity_name=self.registry.entity_name(row.entity_id),
            entity_type=entity_type.value if entity_type else None,
            payment_method=row.payment_method,
            shift=row.shift,
            origin_fund=row.origin_fund,
        )

    def read(
        self,
        rows: Iterable[LegacyTransaction],
        migrated_ids: set[str] | None = None,
    ) -> list[DisplayTransaction]:
        """Ledger로 이관된 기록(migrated_ids)은 중복 표시하지 않는다"""
        migrated_ids = migrated_ids or set()
        return [self.to_display(row) for row in rows if row.id not in migrated_ids]


# -----------------------------------------------------------------------------
# 데모 데이터
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class DemoAccount:
    id: str
    name: str
    type: str  # association | resource | merchant
    balance_cents: int = 0
    description: str = ""
    entity_id: str | None = None
    active: bool = True


@dataclass(frozen=True)
class DemoTransaction:
    id: str
    date: str
    description: str
    amount_cents: int
    type: str  # income | expense
    category: str
    account_id: str
    module: str
    merchant_id: str | None = None
    source_account_id: str | None = None
    destination_account_id: str | None = None
    created_by_name: str | None = None
    status: str = "posted"
    parent_transaction_id: str | None = None
    created_at: str | None = None


@dataclass
class DemoDataset:
    """데모 모드용 가상 데이터"""

    accounts: list[DemoAccount] = field(default_factory=list)
    merchants: list[DemoAccount] = field(default_factory=list)
    transactions: list[DemoTransaction] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DemoDataset:
        def to_cents(value: Any) -> int:
            return int((Decimal(str(value)) * 100).quantize(Decimal("1")))

        def account(item: dict[str, Any], default_type: str) -> DemoAccount:
            return DemoAccount(
                id=str(item["id"]),
                name=str(item["name"]),
                type=str(item.get("type", default_type)),
                balance_cents=to_cents(item.get("balance", 0)),
                description=str(item.get("description", "")),
                entity_id=item.get("entity_id"),
                active=bool(item.get("active", True)),
            )

        transactions = [
            DemoTransaction(
                id=str(item["id"]),
                date=str(item["date"]),
                description=str(item.get("description", "")),
                amount_cents=to_cents(item["amount"]),
                type=str(item["type"]),
                category=str(item.get("category", "")),
                account_id=str(item["account_id"]),
                module=str(item.get("module", ModuleKey.OUTROS.value)),
                merchant_id=item.get("merchant_id"),
                source_account_id=item.get("source_account_id"),
                destination_account_id=item.get("destination_account_id"),
                created_by_name=item.get("created_by_name"),
                status=str(item.get("status", "posted")),
                parent_transaction_id=item.get("parent_transaction_id"),
                created_at=item.get("created_at"),
            )
            for item in data.get("transactions") or []
        ]
        return cls(
            accounts=[account(a, "association") for a in data.get("accounts") or []],
            merchants=[account(m, "merchant") for m in data.get("merchants") or []],
            transactions=transactions,
        )

    @classmethod
    def load(cls, path: Path) -> DemoDataset:
        """YAML 데이터셋 로드 (파일이 없으면 빈 데이터셋)"""
        if not path.exists():
            logger.warning("데모 데이터셋 없음", extra={"path": str(path)})
            return cls()
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.from_dict(data)


class DemoSourceReader:
    """데모 데이터 변환 (income → in, 그 외 out)"""

    def __init__(self, dataset: DemoDataset):
        self.dataset = dataset
        self._accounts = {a.id: a for a in dataset.accounts}
        self._merchants = {m.id: m for m in dataset.merchants}

    def _name(self, account_id: str | None) -> str | None:
        if not account_id:
            return None
        account = self._accounts.get(account_id)
        return account.name if account else None

    def to_display(self, tx: DemoTransaction) -> DisplayTransaction:
        merchant = self._merchants.get(tx.merchant_id or "")
        return DisplayTransaction(
            id=tx.id,
            origin="demo",
            transaction_date=tx.date[:10],
            created_at=(
                _parse_timestamp(tx.created_at)
                if tx.created_at
                else business_noon_utc(tx.date[:10])
            ),
            module=tx.module,
            module_label=module_label(tx.module),
            amount_cents=tx.amount_cents,
            amount=cents_to_decimal(tx.amount_cents),
            direction=Direction.IN if tx.type == "income" else Direction.OUT,
            description=tx.description,
            status=tx.status,
            created_by="demo-user",
            creator_name=tx.created_by_name or DEMO_CREATOR_NAME,
            source_account_name=self._name(tx.source_account_id),
            destination_account_name=self._name(tx.destination_account_id) or self._name(tx.account_id),
            merchant_id=tx.merchant_id,
            merchant_name=merchant.name if merchant else None,
            parent_transaction_id=tx.parent_transaction_id,
        )

    def read(self) -> list[DisplayTransaction]:
        return [self.to_display(tx) for tx in self.dataset.transactions]


class TransactionNormalizer:
    """출처별 기록을 합쳐 최신순 표시 목록 생성

    Args:
        registry: 계정 키 레지스트리
        profiles: 사용자 ID → 이름
    """

    def __init__(self, registry: AccountKeyRegistry, profiles: dict[str, str] | None = None):
        self.ledger_reader = LedgerSourceReader(registry, profiles)
        self.legacy_reader = LegacySourceReader(registry, profiles)

    def normalize(
        self,
        ledger_entries: Iterable[LedgerTransaction],
        legacy_rows: Iterable[LegacyTransaction] = (),
    ) -> list[DisplayTransaction]:
        entries = list(ledger_entries)
        migrated_ids = {
            str(entry.metadata.legacy_id) for entry in entries if entry.metadata.legacy_id
        }
        display = self.ledger_reader.read(entries)
        display.extend(self.legacy_reader.read(legacy_rows, migrated_ids))
        return sort_display(display)
