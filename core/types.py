"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class AppMode(str, Enum):
    """실행 모드 (실운영 / 데모)"""

    PRODUCTION = "production"
    DEMO = "demo"


class EntityType(str, Enum):
    """회계 주체 유형

    계정을 묶는 단위. 업무 처리 시 어떤 계정을 사용할 수 있는지 결정.
    """

    ASSOCIACAO = "associacao"  # 학부모회
    UE = "ue"  # Unidade Executora
    CX = "cx"  # Caixa Escolar


class PaymentMethod(str, Enum):
    """결제 수단"""

    CASH = "cash"
    PIX = "pix"


class Shift(str, Enum):
    """수업 교대 (월회비 접수 단위)"""

    MATUTINO = "matutino"
    VESPERTINO = "vespertino"


class Direction(str, Enum):
    """표시용 자금 방향"""

    IN = "in"
    OUT = "out"
    TRANSFER = "transfer"


class FundOrigin(str, Enum):
    """자금 출처 (가맹점 적립 시)"""

    ASSOC = "ASSOC"
    UE = "UE"
    CX = "CX"


class CostClass(str, Enum):
    """자본/경비 분류"""

    CAPITAL = "capital"
    CUSTEIO = "custeio"


class ErrorKind(str, Enum):
    """업무 처리 실패 분류"""

    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    PERSISTENCE = "persistence"
    NOT_FOUND = "not_found"
