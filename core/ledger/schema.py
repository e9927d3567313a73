"""
Ledger 스키마 초기화

Web 시작 시 자동으로 Ledger 테이블과 초기 계정 생성.
CREATE IF NOT EXISTS / INSERT OR IGNORE 패턴으로 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

from core.ledger.types import INITIAL_ACCOUNTS, INITIAL_ENTITIES

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 초기 데이터)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_reference_tables(db)
    await _create_ledger_tables(db)
    await _create_legacy_tables(db)
    await _insert_initial_accounts(db)
    logger.info("Ledger 스키마 초기화 완료")


async def _create_reference_tables(db: "SQLiteAdapter") -> None:
    """회계 주체 / 계정 / 가맹점 / 사용자 테이블 생성"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS entity (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('associacao', 'ue', 'cx'))
        )
    """)

    # balance는 과거 화면용 캐시 (센트). Ledger 잔액과 합산하지 않는다
    await db.execute("""
        CREATE TABLE IF NOT EXISTS account (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            entity_id        TEXT NOT NULL,
            ledger_key       TEXT NOT NULL UNIQUE,
            balance          INTEGER NOT NULL DEFAULT 0,
            active           INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (entity_id) REFERENCES entity(id)
        )
    """)

    # 가맹점 잔액은 항상 Ledger에서 계산
    await db.execute("""
        CREATE TABLE IF NOT EXISTS merchant (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL,
            active           INTEGER NOT NULL DEFAULT 1,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS profile (
            id               TEXT PRIMARY KEY,
            name             TEXT NOT NULL
        )
    """)

    await db.commit()


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # 추가 전용 거래 로그
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_transaction (
            seq                  INTEGER PRIMARY KEY AUTOINCREMENT,
            id                   TEXT NOT NULL UNIQUE,
            type                 TEXT NOT NULL
                CHECK (type IN ('income', 'expense', 'transfer', 'fee', 'adjustment')),
            source_account       TEXT NOT NULL,
            destination_account  TEXT NOT NULL,
            amount_cents         INTEGER NOT NULL CHECK (amount_cents > 0),
            description          TEXT NOT NULL,
            transaction_date     TEXT NOT NULL,
            created_at           TEXT NOT NULL,
            created_by           TEXT NOT NULL,
            status               TEXT NOT NULL DEFAULT 'posted'
                CHECK (status IN ('posted', 'voided')),
            module               TEXT NOT NULL,
            metadata_json        TEXT NOT NULL DEFAULT '{}',
            dedup_key            TEXT UNIQUE,
            operation_id         TEXT
        )
    """)

    # 잔액 캐시 (append/void와 같은 트랜잭션에서 갱신)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_balance (
            ledger_key           TEXT PRIMARY KEY,
            balance_cents        INTEGER NOT NULL DEFAULT 0,
            transaction_count    INTEGER NOT NULL DEFAULT 0,
            last_transaction_id  TEXT,
            updated_at           TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await db.execute("""
        CREATE TABLE IF NOT EXISTS ledger_audit (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            transaction_id   TEXT NOT NULL,
            action           TEXT NOT NULL,
            reason           TEXT NOT NULL,
            before_json      TEXT NOT NULL,
            after_json       TEXT NOT NULL,
            actor            TEXT NOT NULL,
            created_at       TEXT NOT NULL,
            FOREIGN KEY (transaction_id) REFERENCES ledger_transaction(id)
        )
    """)

    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_source ON ledger_transaction(source_account)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_destination ON ledger_transaction(destination_account)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_date ON ledger_transaction(transaction_date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_module ON ledger_transaction(module, transaction_date)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_operation ON ledger_transaction(operation_id)")
    await db.execute("CREATE INDEX IF NOT EXISTS idx_ledger_audit_tx ON ledger_audit(transaction_id)")

    await db.commit()
    logger.debug("Ledger 테이블 생성 완료")


async def _create_legacy_tables(db: "SQLiteAdapter") -> None:
    """과거 transactions 테이블 (읽기 전용, 이관 전 기록)"""

    await db.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id                      TEXT PRIMARY KEY,
            transaction_date        TEXT NOT NULL,
            module                  TEXT NOT NULL,
            amount_cents            INTEGER NOT NULL,
            direction               TEXT NOT NULL CHECK (direction IN ('in', 'out', 'transfer')),
            payment_method          TEXT,
            shift                   TEXT,
            description             TEXT,
            notes                   TEXT,
            status                  TEXT NOT NULL DEFAULT 'posted',
            created_by              TEXT,
            source_account_id       TEXT,
            destination_account_id  TEXT,
            merchant_id             TEXT,
            origin_fund             TEXT,
            entity_id               TEXT,
            created_at              TEXT NOT NULL
        )
    """)
    await db.execute("CREATE INDEX IF NOT EXISTS idx_legacy_date ON transactions(transaction_date)")

    await db.commit()


async def _insert_initial_accounts(db: "SQLiteAdapter") -> None:
    """초기 회계 주체와 고정 계정 등록 (INSERT OR IGNORE)"""
    await db.executemany(
        "INSERT OR IGNORE INTO entity (id, name, type) VALUES (?, ?, ?)",
        INITIAL_ENTITIES,
    )
    await db.executemany(
        """
        INSERT OR IGNORE INTO account (id, name, entity_id, ledger_key)
        VALUES (?, ?, ?, ?)
        """,
        INITIAL_ACCOUNTS,
    )
    await db.commit()
    logger.debug(f"초기 계정 등록: {len(INITIAL_ACCOUNTS)}개")
