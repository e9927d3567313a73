"""
SQLite 어댑터 테스트

SQLiteAdapter, 연결 생성, Ledger 스키마 초기화
"""

from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, create_connection, get_db_path
from core.constants import Paths
from core.domain.errors import PersistenceError
from core.ledger.schema import init_ledger_schema
from core.types import AppMode


class TestGetDbPath:
    """get_db_path 테스트"""

    def test_production_mode(self) -> None:
        path = get_db_path(AppMode.PRODUCTION)

        assert path == Paths.PROD_DB
        assert isinstance(path, Path)

    def test_demo_mode(self) -> None:
        assert get_db_path(AppMode.DEMO) == Paths.DEMO_DB

    def test_string_mode(self) -> None:
        """문자열 모드 (대소문자 무관)"""
        assert get_db_path("Demo") == Paths.DEMO_DB


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_wal_mode(self, tmp_path: Path) -> None:
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)
        assert db_path.parent.exists()
        await conn.close()

    @pytest.mark.asyncio
    async def test_readonly_missing_file(self, tmp_path: Path) -> None:
        """읽기 전용 연결은 파일을 만들지 않음"""
        with pytest.raises(PersistenceError):
            await create_connection(tmp_path / "missing.db", readonly=True)


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        adapter = SQLiteAdapter(tmp_path / "test.db")
        await adapter.connect()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")
        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_not_connected(self, tmp_path: Path) -> None:
        adapter = SQLiteAdapter(tmp_path / "test.db")
        with pytest.raises(PersistenceError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_execute_and_fetch(self, adapter: SQLiteAdapter) -> None:
        await adapter.execute("CREATE TABLE items (value TEXT)")
        await adapter.executemany(
            "INSERT INTO items (value) VALUES (?)",
            [("Espécie",), ("Cofre",)],
        )
        await adapter.commit()

        rows = await adapter.fetchall("SELECT value FROM items ORDER BY value")
        assert [r[0] for r in rows] == ["Cofre", "Espécie"]

        row = await adapter.fetchone("SELECT COUNT(*) FROM items")
        assert row[0] == 2

    @pytest.mark.asyncio
    async def test_sql_error_wrapped(self, adapter: SQLiteAdapter) -> None:
        """드라이버 오류는 PersistenceError"""
        with pytest.raises(PersistenceError):
            await adapter.execute("SELECT * FROM nao_existe")

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()

        async with adapter.transaction() as tx:
            await tx.execute("INSERT INTO tx_test (id) VALUES (1)")
            await tx.execute("INSERT INTO tx_test (id) VALUES (2)")

        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")
        await adapter.commit()

        with pytest.raises(ValueError):
            async with adapter.transaction() as tx:
                await tx.execute("INSERT INTO tx_test (id) VALUES (1)")
                raise ValueError("의도적 에러")

        assert await adapter.fetchall("SELECT id FROM tx_test") == []

    @pytest.mark.asyncio
    async def test_transaction_constraint_rollback(self, adapter: SQLiteAdapter) -> None:
        """제약 위반 시 같은 트랜잭션의 앞선 기록도 롤백"""
        await adapter.execute("CREATE TABLE uniq (key TEXT UNIQUE)")
        await adapter.commit()

        with pytest.raises(PersistenceError):
            async with adapter.transaction() as tx:
                await tx.execute("INSERT INTO uniq (key) VALUES ('a')")
                await tx.execute("INSERT INTO uniq (key) VALUES ('a')")

        assert await adapter.fetchall("SELECT key FROM uniq") == []

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "ctx_test.db") as adapter:
            assert adapter.is_connected is True

        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_readonly_rejects_write(self, tmp_path: Path) -> None:
        db_path = tmp_path / "ro.db"
        async with SQLiteAdapter(db_path) as writer:
            await init_ledger_schema(writer)

            async with SQLiteAdapter(db_path, readonly=True) as reader:
                assert await reader.table_exists("ledger_transaction")
                with pytest.raises(PersistenceError):
                    await reader.execute("DELETE FROM merchant")


class TestInitLedgerSchema:
    """Ledger 스키마 초기화"""

    @pytest.mark.asyncio
    async def test_creates_tables(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "schema.db") as adapter:
            await init_ledger_schema(adapter)

            for table in (
                "entity",
                "account",
                "merchant",
                "profile",
                "ledger_transaction",
                "ledger_balance",
                "ledger_audit",
                "transactions",
            ):
                assert await adapter.table_exists(table) is True

    @pytest.mark.asyncio
    async def test_idempotent(self, tmp_path: Path) -> None:
        """여러 번 실행해도 초기 계정 중복 없음"""
        async with SQLiteAdapter(tmp_path / "schema.db") as adapter:
            await init_ledger_schema(adapter)
            await init_ledger_schema(adapter)

            row = await adapter.fetchone("SELECT COUNT(*) FROM account")
            assert row[0] == 6
            row = await adapter.fetchone("SELECT COUNT(*) FROM entity")
            assert row[0] == 3

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, tmp_path: Path) -> None:
        async with SQLiteAdapter(tmp_path / "schema.db") as adapter:
            await init_ledger_schema(adapter)

            with pytest.raises(PersistenceError):
                await adapter.execute(
                    """
                    INSERT INTO ledger_transaction (
                        id, type, source_account, destination_account, amount_cents,
                        description, transaction_date, created_at, created_by, module
                    ) VALUES ('t1', 'income', 'ext:income', 'cash', 0,
                              'x', '2025-03-10', '2025-03-10T15:00:00+00:00', 'system', 'outros')
                    """
                )
