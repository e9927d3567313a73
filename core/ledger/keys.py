"""
계정 키 레지스트리

업무 이름/계정 ID ↔ Ledger 키 변환.
고정 키는 types.py의 상수, UE/CX 계정과 가맹점은 DB에서 로드.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.ledger.types import (
    ACCOUNT_NAMES,
    ASSOCIATION_KEYS,
    EXTERNAL_PREFIX,
    INITIAL_ACCOUNTS,
    INITIAL_ENTITIES,
)
from core.types import EntityType

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityInfo:
    id: str
    name: str
    type: EntityType


@dataclass(frozen=True)
class AccountInfo:
    id: str
    name: str
    entity_id: str
    ledger_key: str
    active: bool = True


@dataclass(frozen=True)
class MerchantInfo:
    id: str
    name: str
    active: bool = True


def is_external(key: str | None) -> bool:
    """외부 계정 여부 (ext: 접두사)"""
    return bool(key) and key.startswith(EXTERNAL_PREFIX)  # type: ignore[union-attr]


class AccountKeyRegistry:
    """계정 키 레지스트리

    조회 실패 시 예외 대신 입력값을 그대로 돌려준다.

    Args:
        entities: 회계 주체 목록
        accounts: 계정 목록
        merchants: 가맹점 목록
    """

    def __init__(
        self,
        entities: list[EntityInfo] | None = None,
        accounts: list[AccountInfo] | None = None,
        merchants: list[MerchantInfo] | None = None,
    ):
        self._entities = {e.id: e for e in (entities or [])}
        self._accounts = {a.id: a for a in (accounts or [])}
        self._accounts_by_key = {a.ledger_key: a for a in (accounts or [])}
        self._accounts_by_name = {a.name: a for a in (accounts or [])}
        self._merchants = {m.id: m for m in (merchants or [])}
        self._merchants_by_name = {m.name: m for m in (merchants or [])}
        self._static_by_name = {name: key for key, name in ACCOUNT_NAMES.items()}

    @classmethod
    def default(cls) -> AccountKeyRegistry:
        """초기 주체/계정만 가진 레지스트리 (DB 없이 사용)"""
        return cls(
            entities=[EntityInfo(i, n, EntityType(t)) for i, n, t in INITIAL_ENTITIES],
            accounts=[AccountInfo(i, n, e, k) for i, n, e, k in INITIAL_ACCOUNTS],
        )

    @classmethod
    async def load(cls, db: SQLiteAdapter) -> AccountKeyRegistry:
        """DB에서 주체/계정/가맹점 로드"""
        entity_rows = await db.fetchall("SELECT id, name, type FROM entity")
        account_rows = await db.fetchall(
            "SELECT id, name, entity_id, ledger_key, active FROM account"
        )
        merchant_rows = await db.fetchall("SELECT id, name, active FROM merchant")

        registry = cls(
            entities=[EntityInfo(r[0], r[1], EntityType(r[2])) for r in entity_rows],
            accounts=[AccountInfo(r[0], r[1], r[2], r[3], bool(r[4])) for r in account_rows],
            merchants=[MerchantInfo(r[0], r[1], bool(r[2])) for r in merchant_rows],
        )
        logger.debug(
            "계정 레지스트리 로드",
            extra={
                "entities": len(entity_rows),
                "accounts": len(account_rows),
                "merchants": len(merchant_rows),
            },
        )
        return registry

    # -------------------------------------------------------------------------
    # 변환
    # -------------------------------------------------------------------------

    def resolve_key(self, value: str) -> str:
        """계정 이름/ID/가맹점 이름 → Ledger 키 (모르면 입력 그대로)"""
        if not value:
            return value
        if value in ACCOUNT_NAMES:
            return value
        if value in self._static_by_name:
            return self._static_by_name[value]
        account = self._accounts.get(value) or self._accounts_by_name.get(value)
        if account is not None:
            return account.ledger_key
        merchant = self._merchants.get(value) or self._merchants_by_name.get(value)
        if merchant is not None:
            return merchant.id
        return value

    def resolve_name(self, key: str | None) -> str:
        """Ledger 키 → 표시 이름 (모르면 키 그대로)"""
        if not key:
            return ""
        account = self._accounts_by_key.get(key)
        if account is not None:
            return account.name
        merchant = self._merchants.get(key)
        if merchant is not None:
            return merchant.name
        return ACCOUNT_NAMES.get(key, key)

    def is_external(self, key: str | None) -> bool:
        return is_external(key)

    def is_merchant(self, key: str) -> bool:
        return key in self._merchants

    def is_known(self, key: str) -> bool:
        """내부 계정 또는 가맹점으로 등록된 키인지"""
        return key in ACCOUNT_NAMES or key in self._accounts_by_key or key in self._merchants

    def entity_of(self, key: str | None) -> str | None:
        """키를 소유한 회계 주체 ID"""
        if not key or is_external(key):
            return None
        account = self._accounts_by_key.get(key)
        if account is not None:
            return account.entity_id
        if key in ASSOCIATION_KEYS:
            return self.association_entity_id()
        return None

    def association_entity_id(self) -> str | None:
        for entity in self._entities.values():
            if entity.type == EntityType.ASSOCIACAO:
                return entity.id
        return None

    def entity_type(self, entity_id: str | None) -> EntityType | None:
        if not entity_id:
            return None
        entity = self._entities.get(entity_id)
        return entity.type if entity else None

    def entity_name(self, entity_id: str | None) -> str | None:
        if not entity_id:
            return None
        entity = self._entities.get(entity_id)
        return entity.name if entity else None

    def merchant_name(self, merchant_id: str | None) -> str | None:
        if not merchant_id:
            return None
        merchant = self._merchants.get(merchant_id)
        return merchant.name if merchant else merchant_id

    def account(self, key: str) -> AccountInfo | None:
        return self._accounts_by_key.get(key) or self._accounts.get(key)

    def resource_keys(self) -> list[str]:
        """UE/CX 주체 소유 계정 키"""
        return sorted(
            a.ledger_key
            for a in self._accounts.values()
            if self.entity_type(a.entity_id) in (EntityType.UE, EntityType.CX)
        )

    def internal_keys(self) -> list[str]:
        """모든 내부 키 (고정 키 + 계정 + 가맹점)"""
        keys = {k for k in ACCOUNT_NAMES if not is_external(k)}
        keys.update(self._accounts_by_key)
        keys.update(self._merchants)
        return sorted(keys)
