"""
Ledger 예외 계층

모든 예외는 LedgerError를 상속하며 code 속성(기계 판독용)을 가진다.

    LedgerError
    +-- ValidationError        입력 형식/필수값 오류 (저장 전 차단)
    +-- BusinessRuleViolation  잔액 부족, 제한 경로, 0원 조정 등
    +-- PersistenceError       저장소 장애 (자동 재시도 없음)
    +-- NotFoundError          존재하지 않는 거래 ID

정합성 불일치(IntegrityMismatch)는 예외가 아니라 Reconciler의 보고 항목이다.
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 기본 예외"""

    code: str = "LEDGER_ERROR"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 직렬화"""
        return {"code": self.code, "message": self.message, **self.details}


class ValidationError(LedgerError):
    """입력 검증 실패

    Args:
        message: 사용자 표시 메시지
        field: 문제가 된 필드명 (선택)
    """

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, field=field)
        self.field = field


class BusinessRuleViolation(LedgerError):
    """업무 규칙 위반

    Args:
        message: 사용자 표시 메시지
        rule: 위반한 규칙 식별자 (insufficient_balance, restricted_route 등)
    """

    code = "BUSINESS_RULE_VIOLATION"

    def __init__(self, message: str, rule: str):
        super().__init__(message, rule=rule)
        self.rule = rule


class PersistenceError(LedgerError):
    """저장소 장애"""

    code = "PERSISTENCE_ERROR"


class NotFoundError(LedgerError):
    """대상 없음"""

    code = "NOT_FOUND"

    def __init__(self, message: str, entity_id: str | None = None):
        super().__init__(message, entity_id=entity_id)
        self.entity_id = entity_id
