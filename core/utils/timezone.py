"""
타임존 유틸리티

내부 저장: UTC | 업무 일자: 학교 현지 시간(BRT, UTC-3) 원칙 준수를 위한 헬퍼 함수
"""

from datetime import date, datetime, time, timedelta, timezone

from core.constants import Defaults

# BRT 타임존 (America/Sao_Paulo, 서머타임 없음: UTC-3)
BRT = timezone(timedelta(hours=-3))


def to_brt(dt: datetime) -> datetime:
    """UTC datetime을 BRT로 변환

    Args:
        dt: datetime 객체 (UTC 권장, naive면 UTC로 간주)

    Example:
        >>> utc_dt = datetime(2026, 3, 1, 2, 0, 0, tzinfo=timezone.utc)
        >>> to_brt(utc_dt).day
        28  # 전날 23:00
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(BRT)


def format_brt(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """UTC datetime을 BRT 문자열로 포맷"""
    return to_brt(dt).strftime(fmt)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)"""
    return datetime.now(timezone.utc)


def now_brt() -> datetime:
    """현재 BRT 시간 반환"""
    return datetime.now(BRT)


def today_brt() -> str:
    """현재 업무 일자 (BRT 기준 YYYY-MM-DD)"""
    return now_brt().date().isoformat()


def business_date_of(dt: datetime) -> str:
    """UTC 시각에 해당하는 업무 일자 (BRT 기준 YYYY-MM-DD)"""
    return to_brt(dt).date().isoformat()


def business_noon_utc(business_date: str | date) -> datetime:
    """업무 일자의 현지 정오를 UTC로 반환

    날짜만 입력된 거래를 기록할 때 사용.
    자정 기준으로 저장하면 UTC 변환 시 전날로 밀리는 문제가 생긴다.

    Args:
        business_date: YYYY-MM-DD 문자열 또는 date

    Raises:
        ValueError: 날짜 형식 오류
    """
    if isinstance(business_date, str):
        business_date = date.fromisoformat(business_date)
    local = datetime.combine(business_date, time(hour=Defaults.BUSINESS_HOUR), tzinfo=BRT)
    return local.astimezone(timezone.utc)


def parse_business_date(value: str) -> str:
    """YYYY-MM-DD 검증 후 정규화된 문자열 반환

    Raises:
        ValueError: 날짜 형식 오류
    """
    return date.fromisoformat(value).isoformat()
