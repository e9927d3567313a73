"""
Web API 통합 테스트

임시 DB로 의존성을 교체하여 요청 → 기록 → 조회 흐름 검증
"""

from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.domain.errors import (
    BusinessRuleViolation,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from web.app import app, error_status
from web.dependencies import get_app_settings, get_db, get_db_write


@pytest_asyncio.fixture
async def client(db: SQLiteAdapter) -> AsyncIterator[AsyncClient]:
    """임시 DB를 사용하는 API 클라이언트 (lifespan 미실행)"""
    db_path = db.db_path

    async def _get_db() -> AsyncIterator[SQLiteAdapter]:
        async with SQLiteAdapter(db_path, readonly=True) as conn:
            yield conn

    async def _get_db_write() -> AsyncIterator[SQLiteAdapter]:
        async with SQLiteAdapter(db_path) as conn:
            yield conn

    Settings.reset()
    settings = get_settings()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_db_write] = _get_db_write
    app.dependency_overrides[get_app_settings] = lambda: settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    Settings.reset()


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestOperationsApi:
    """업무 요청 API"""

    @pytest.mark.asyncio
    async def test_list_operations(self, client: AsyncClient) -> None:
        response = await client.get("/api/operations")
        assert "Transfer" in response.json()["operations"]

    @pytest.mark.asyncio
    async def test_monthly_fee_then_balance(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/operations/monthly-fee",
            json={"shift": "matutino", "cash_cents": 15000, "transaction_date": "2025-03-10"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["touched_balances"] == {"cash": 15000}

        balance = await client.get("/api/ledger/balances/Espécie")
        assert balance.status_code == 200
        assert balance.json()["key"] == "cash"
        assert balance.json()["balance_cents"] == 15000

    @pytest.mark.asyncio
    async def test_business_rule_409(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/operations/transfer",
            json={"source": "cash", "destination": "safe", "amount_cents": 100, "description": "Cofre"},
        )
        assert response.status_code == 409
        assert response.json()["detail"]["rule"] == "insufficient_balance"

    @pytest.mark.asyncio
    async def test_validation_422(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/operations/expense",
            json={"payment_method": "boleto", "amount_cents": 100, "description": "Teste"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["error_kind"] == "validation"

    @pytest.mark.asyncio
    async def test_retry_same_operation_id(self, client: AsyncClient) -> None:
        payload = {
            "operation_id": "op-web-1",
            "amount_cents": 2000,
            "description": "PIX sem identificação",
        }
        first = await client.post("/api/operations/unidentified-pix", json=payload)
        second = await client.post("/api/operations/unidentified-pix", json=payload)

        assert first.json()["replayed"] is False
        assert second.json()["replayed"] is True
        assert second.json()["entry_ids"] == first.json()["entry_ids"]

    @pytest.mark.asyncio
    async def test_batch_discarded(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/operations/pix-fees",
            json={
                "lines": [
                    {"amount_cents": 100, "description": "Taxa 1"},
                    {"amount_cents": 0, "description": "Taxa 2"},
                ]
            },
        )
        body = response.json()
        assert body["posted_count"] == 1
        assert body["discarded"] == [{"index": 1, "reason": "amount"}]


class TestLedgerApi:
    """조회/취소 API"""

    @pytest.mark.asyncio
    async def test_balances_list(self, client: AsyncClient) -> None:
        response = await client.get("/api/ledger/balances")
        keys = [b["key"] for b in response.json()["balances"]]
        assert "cash" in keys
        assert "merc-papelaria" in keys
        assert not any(k.startswith("ext:") for k in keys)

    @pytest.mark.asyncio
    async def test_unknown_balance_404(self, client: AsyncClient) -> None:
        response = await client.get("/api/ledger/balances/nao-existe")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_transactions_and_void(self, client: AsyncClient) -> None:
        created = await client.post(
            "/api/operations/unidentified-pix",
            json={"amount_cents": 2000, "description": "PIX recebido", "transaction_date": "2025-03-10"},
        )
        entry_id = created.json()["entry_ids"][0]

        listing = await client.get("/api/ledger/transactions", params={"keys": "pix_bb"})
        assert listing.json()["total"] == 1
        tx = listing.json()["transactions"][0]
        assert tx["id"] == entry_id
        assert tx["direction"] == "in"
        assert tx["module_label"] == "PIX Não Identificado"

        voided = await client.post(
            f"/api/ledger/transactions/{entry_id}/void",
            json={"reason": "lançado errado"},
        )
        assert voided.status_code == 200
        assert voided.json()["touched_balances"] == {"pix_bb": 0}

        again = await client.post(
            f"/api/ledger/transactions/{entry_id}/void",
            json={"reason": "lançado errado"},
        )
        assert again.status_code == 409

        missing = await client.post(
            "/api/ledger/transactions/nao-existe/void",
            json={"reason": "lançado errado"},
        )
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_integrity(self, client: AsyncClient) -> None:
        await client.post(
            "/api/operations/resource-income",
            json={"account": "resource_ue", "amount_cents": 50000, "description": "Repasse PDDE"},
        )
        response = await client.get("/api/ledger/integrity")
        body = response.json()
        assert body["has_errors"] is False
        assert {c["key"] for c in body["checks"]} == {"ext:income", "resource_ue"}


class TestErrorMapping:
    """라우트에서 전파된 LedgerError 상태 코드"""

    @pytest_asyncio.fixture
    async def schemaless_client(self, tmp_path: Path) -> AsyncIterator[AsyncClient]:
        """스키마가 없는 DB를 사용하는 클라이언트 (조회 시 PersistenceError)"""
        db_path = tmp_path / "empty.db"

        async def _get_db() -> AsyncIterator[SQLiteAdapter]:
            async with SQLiteAdapter(db_path) as conn:
                yield conn

        Settings.reset()
        settings = get_settings()
        app.dependency_overrides[get_db] = _get_db
        app.dependency_overrides[get_app_settings] = lambda: settings

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac

        app.dependency_overrides.clear()
        Settings.reset()

    @pytest.mark.asyncio
    async def test_integrity_persistence_503(self, schemaless_client: AsyncClient) -> None:
        response = await schemaless_client.get("/api/ledger/integrity")

        assert response.status_code == 503
        assert response.json()["detail"]["code"] == "PERSISTENCE_ERROR"

    @pytest.mark.asyncio
    async def test_balances_persistence_503(self, schemaless_client: AsyncClient) -> None:
        response = await schemaless_client.get("/api/ledger/balances")
        assert response.status_code == 503

    def test_error_status(self) -> None:
        assert error_status(ValidationError("x")) == 422
        assert error_status(BusinessRuleViolation("x", rule="r")) == 409
        assert error_status(PersistenceError("x")) == 503
        assert error_status(NotFoundError("x")) == 404
        assert error_status(LedgerError("x")) == 500
