"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import get_settings
from core.domain.errors import (
    BusinessRuleViolation,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from core.ledger.schema import init_ledger_schema
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web", console_level=get_settings().app.log_level)

from web.routes import health, ledger, operations  # noqa: E402

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리"""
    settings = get_settings()

    # 시작 시 - DB 스키마 자동 초기화 (초기 주체/계정 포함)
    async with SQLiteAdapter(settings.db_path) as db:
        await init_ledger_schema(db)

    logger.info(
        "Web 시작",
        extra={"mode": settings.mode.value, "db_path": str(settings.db_path)},
    )

    yield

    logger.info("Web 종료")


app = FastAPI(
    title="Caixa Ledger API",
    description="학부모회 회계 장부 API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(ledger.router)
app.include_router(operations.router)


def error_status(exc: LedgerError) -> int:
    """예외 → HTTP 상태 코드"""
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, BusinessRuleViolation):
        return 409
    if isinstance(exc, PersistenceError):
        return 503
    if isinstance(exc, NotFoundError):
        return 404
    return 500


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """라우트에서 전파된 LedgerError 응답 변환"""
    status_code = error_status(exc)
    logger.warning(
        f"요청 실패: {request.method} {request.url.path}",
        extra={"status": status_code, "code": exc.code},
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})
