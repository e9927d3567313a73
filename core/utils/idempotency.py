"""
Idempotency 유틸리티

operation_id 생성/파싱 및 거래별 dedup_key 생성
규칙:
    operation_id: op-{uuid4}
    dedup_key:    {operation_id}:{leg}
"""

import uuid

# 업무 요청 ID 접두사
OPERATION_PREFIX: str = "op"

# operation_id와 leg 구분자
LEG_SEPARATOR: str = ":"


def make_operation_id() -> str:
    """새 operation_id 생성

    Returns:
        op-{uuid4} 형식 문자열

    Example:
        >>> make_operation_id()
        'op-550e8400-e29b-41d4-a716-446655440000'
    """
    return f"{OPERATION_PREFIX}-{uuid.uuid4()}"


def make_entry_dedup_key(operation_id: str, leg: str) -> str:
    """거래 한 건(leg)의 dedup_key 생성

    같은 operation_id로 재요청하면 같은 키가 생성되어
    이미 기록된 leg는 다시 쓰이지 않는다.

    Args:
        operation_id: 업무 요청 ID
        leg: 요청 내 거래 구분자 (예: "cash", "transfer", "fee", "line-0")

    Returns:
        {operation_id}:{leg}

    Example:
        >>> make_entry_dedup_key("op-123", "fee")
        'op-123:fee'
    """
    if not operation_id:
        raise ValueError("operation_id는 비어 있을 수 없습니다")
    if not leg:
        raise ValueError("leg는 비어 있을 수 없습니다")

    return f"{operation_id}{LEG_SEPARATOR}{leg}"


def parse_dedup_key(dedup_key: str) -> tuple[str, str] | None:
    """dedup_key에서 (operation_id, leg) 추출

    Example:
        >>> parse_dedup_key("op-123:fee")
        ('op-123', 'fee')
        >>> parse_dedup_key("invalid")
        None
    """
    if not dedup_key or LEG_SEPARATOR not in dedup_key:
        return None

    operation_id, leg = dedup_key.rsplit(LEG_SEPARATOR, 1)
    if not operation_id or not leg:
        return None
    return operation_id, leg


def is_operation_id(value: str) -> bool:
    """op- 접두사 형식 여부"""
    if not value:
        return False
    prefix = f"{OPERATION_PREFIX}-"
    return value.startswith(prefix) and len(value) > len(prefix)


def validate_operation_id(value: str) -> bool:
    """operation_id 형식 유효성 검사

    op- 접두사를 가지며 구분자(:)를 포함하지 않아야 한다.
    외부에서 전달된 ID도 허용하되 dedup_key 파싱이 깨지지 않도록 한다.
    """
    return is_operation_id(value) and LEG_SEPARATOR not in value
