"""
업무 요청 라우트

POST /api/operations/* - 업무 요청 기록

실패 응답 상태 코드:
- 422: 입력 검증 실패
- 409: 업무 규칙 위반 (잔액 부족, 제한 경로 등)
- 503: 저장소 장애 (detail.posted_count로 부분 기록 확인 후 같은 operation_id로 재시도)
- 404: 대상 없음
"""

from fastapi import APIRouter, Depends, HTTPException

from bookkeeping.executor import OperationExecutor
from bookkeeping.handlers import OperationResult
from core.types import ErrorKind
from web.dependencies import get_executor
from web.models.requests import (
    AdjustmentBody,
    AssociationExpenseBody,
    MerchantConsumptionBody,
    MerchantContributionBody,
    MonthlyFeeBody,
    PixFeeBatchBody,
    ResourceExpenseBody,
    ResourceIncomeBody,
    TransferBody,
    UnidentifiedPixBody,
)
from web.models.responses import OperationResponse

router = APIRouter(prefix="/api/operations", tags=["Operations"])

ERROR_STATUS: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.BUSINESS_RULE: 409,
    ErrorKind.PERSISTENCE: 503,
    ErrorKind.NOT_FOUND: 404,
}


def to_response(result: OperationResult) -> OperationResponse:
    """처리 결과 → 응답 (실패면 HTTPException)"""
    body = result.to_dict()
    if not result.success:
        status_code = ERROR_STATUS.get(result.error_kind, 500) if result.error_kind else 500
        raise HTTPException(status_code=status_code, detail=body)
    return OperationResponse(**body)


@router.get("")
async def list_operations(
    executor: OperationExecutor = Depends(get_executor),
) -> dict[str, list[str]]:
    """지원하는 요청 타입"""
    return {"operations": executor.supported_operations}


@router.post("/monthly-fee", response_model=OperationResponse)
async def monthly_fee(
    body: MonthlyFeeBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """월회비 접수 (현금/PIX)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/expense", response_model=OperationResponse)
async def association_expense(
    body: AssociationExpenseBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """학부모회 지출"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/transfer", response_model=OperationResponse)
async def transfer(
    body: TransferBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """계정 간 이동 (수수료 선택)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/adjustment", response_model=OperationResponse)
async def adjustment(
    body: AdjustmentBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """잔액 조정 (목표 잔액)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/merchant-contribution", response_model=OperationResponse)
async def merchant_contribution(
    body: MerchantContributionBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """가맹점 적립"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/merchant-consumption", response_model=OperationResponse)
async def merchant_consumption(
    body: MerchantConsumptionBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """가맹점 잔액 사용 (일괄)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/resource-expense", response_model=OperationResponse)
async def resource_expense(
    body: ResourceExpenseBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """자원 계정 지출 (일괄)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/pix-fees", response_model=OperationResponse)
async def pix_fees(
    body: PixFeeBatchBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """PIX 수수료 (일괄)"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/unidentified-pix", response_model=OperationResponse)
async def unidentified_pix(
    body: UnidentifiedPixBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """입금자 미확인 PIX"""
    return to_response(await executor.execute(body.to_request()))


@router.post("/resource-income", response_model=OperationResponse)
async def resource_income(
    body: ResourceIncomeBody,
    executor: OperationExecutor = Depends(get_executor),
) -> OperationResponse:
    """자원 계정 입금"""
    return to_response(await executor.execute(body.to_request()))

