"""
유틸리티 패키지

operation_id/dedup_key 관리, 키 단위 잠금, 타임존 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    BRT,
    to_brt,
    format_brt,
    now_utc,
    now_brt,
    today_brt,
    business_date_of,
    business_noon_utc,
    parse_business_date,
)
from core.utils.idempotency import (
    make_operation_id,
    make_entry_dedup_key,
    parse_dedup_key,
    validate_operation_id,
)
from core.utils.key_lock import KeyLocks

__all__ = [
    "BRT",
    "to_brt",
    "format_brt",
    "now_utc",
    "now_brt",
    "today_brt",
    "business_date_of",
    "business_noon_utc",
    "parse_business_date",
    "make_operation_id",
    "make_entry_dedup_key",
    "parse_dedup_key",
    "validate_operation_id",
    "KeyLocks",
]
