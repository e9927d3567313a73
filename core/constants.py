"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 업무 규칙 기본값 (settings.yaml에서 덮어쓰기 가능)
    MIN_DESCRIPTION_LENGTH: int = 3
    MIN_REASON_LENGTH: int = 3

    # 업무 일자 기준 시각 (날짜만 입력된 거래는 현지 정오로 기록)
    BUSINESS_HOUR: int = 12

    CREATED_BY_SYSTEM: str = "system"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    WEB_LOGS_DIR: Path = LOGS_DIR / "web"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    PROD_DB: Path = DATA_DIR / "caixa_prod.db"
    DEMO_DB: Path = DATA_DIR / "caixa_demo.db"

    # 데모 데이터셋
    DEMO_DATASET: Path = DATA_DIR / "demo_seed.yaml"


class Tolerances:
    """정합성 비교 허용 오차 (센트 단위)"""

    # |차이| < 1센트면 정상
    RECONCILE_CENTS: int = 1
