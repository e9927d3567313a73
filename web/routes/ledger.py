"""
Ledger API 라우트

잔액, 거래 내역, 정합성 검사 조회 및 거래 취소
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from bookkeeping.executor import OperationExecutor
from core.config.loader import Settings
from core.domain.requests import VoidRequest
from core.ledger.normalizer import DisplayTransaction
from web.dependencies import get_app_settings, get_db, get_executor
from web.models.requests import VoidBody
from web.models.responses import (
    BalanceListResponse,
    BalanceResponse,
    IntegrityResponse,
    OperationResponse,
    TransactionListResponse,
    TransactionResponse,
)
from web.routes.operations import to_response
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/ledger", tags=["Ledger"])


def _transaction_response(tx: DisplayTransaction) -> TransactionResponse:
    return TransactionResponse(
        id=tx.id,
        origin=tx.origin,
        transaction_date=tx.transaction_date,
        created_at=tx.created_at,
        module=tx.module,
        module_label=tx.module_label,
        amount_cents=tx.amount_cents,
        amount=tx.amount,
        direction=tx.direction.value,
        description=tx.description,
        status=tx.status,
        created_by=tx.created_by,
        creator_name=tx.creator_name,
        source_account_name=tx.source_account_name,
        destination_account_name=tx.destination_account_name,
        notes=tx.notes,
        merchant_id=tx.merchant_id,
        merchant_name=tx.merchant_name,
        entity_id=tx.entity_id,
        entity_name=tx.entity_name,
        entity_type=tx.entity_type,
        payment_method=tx.payment_method,
        shift=tx.shift,
        origin_fund=tx.origin_fund,
        parent_transaction_id=tx.parent_transaction_id,
    )


@router.get("/balances", response_model=BalanceListResponse)
async def get_balances(
    include_external: bool = Query(default=False, description="외부 계정(ext:) 포함"),
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> BalanceListResponse:
    """계정별 잔액"""
    service = LedgerService(db, settings)
    balances = await service.get_balances(include_external=include_external)
    return BalanceListResponse(balances=[BalanceResponse(**b) for b in balances])


@router.get("/balances/{key}", response_model=BalanceResponse)
async def get_balance(
    key: str,
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> BalanceResponse:
    """계정 잔액 (키/이름/ID)"""
    service = LedgerService(db, settings)
    if not await service.is_known_key(key):
        raise HTTPException(status_code=404, detail=f"Unknown account: {key}")
    return BalanceResponse(**await service.get_balance(key))


@router.get("/transactions", response_model=TransactionListResponse)
async def get_transactions(
    keys: str | None = Query(default=None, description="쉼표로 구분한 계정 키"),
    start: str | None = Query(default=None, description="시작일 (YYYY-MM-DD, 포함)"),
    end: str | None = Query(default=None, description="종료일 (YYYY-MM-DD, 포함)"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TransactionListResponse:
    """거래 내역 (최신순, ledger + 과거 기록)"""
    service = LedgerService(db, settings)
    key_list = [k.strip() for k in keys.split(",") if k.strip()] if keys else None
    display = await service.get_transactions(keys=key_list, start=start, end=end)
    page = display[offset : offset + limit]
    return TransactionListResponse(
        transactions=[_transaction_response(tx) for tx in page],
        total=len(display),
    )


@router.get("/integrity", response_model=IntegrityResponse)
async def get_integrity(
    db: SQLiteAdapter = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> IntegrityResponse:
    """잔액 캐시 정합성 검사 (읽기 전용)"""
    service = LedgerService(db, settings)
    return IntegrityResponse(**await service.get_integrity())


@router.post("/transactions/{transaction_id}/void", response_model=OperationResponse)
async def void_transaction(
    transaction_id: str,
    body: VoidBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """거래 취소"""
    request = VoidRequest(
        transaction_id=transaction_id,
        reason=body.reason,
        created_by=body.created_by,
    )
    if body.operation_id:
        request.operation_id = body.operation_id
    return to_response(await executor.execute(request))
