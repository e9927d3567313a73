"""
설정 로더

settings.yaml 로드 및 모드별 DB 경로/업무 규칙 제공
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import AppMode

logger = logging.getLogger(__name__)


def _default_restricted_routes() -> dict[str, tuple[str, ...]]:
    # Conta Digital(Escolaweb)은 PIX 계좌로만 이동 가능
    return {"digital_escolaweb": ("pix_bb",)}


@dataclass(frozen=True)
class LedgerRules:
    """업무 규칙 설정

    불변 데이터 구조로 런타임 변경 방지
    """

    min_description_length: int = Defaults.MIN_DESCRIPTION_LENGTH
    min_reason_length: int = Defaults.MIN_REASON_LENGTH
    # 출발 키 → 허용 도착 키 목록. 목록에 없는 출발 키는 제한 없음
    restricted_routes: dict[str, tuple[str, ...]] = field(
        default_factory=_default_restricted_routes
    )
    # 지출/가맹점 적립 시 잔액 초과 차단 여부
    strict_expense_balance: bool = False
    strict_contribution_balance: bool = False

    def allowed_destinations(self, source: str) -> tuple[str, ...] | None:
        """출발 키의 허용 도착 키 (제한 없으면 None)"""
        return self.restricted_routes.get(source)


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)"""

    mode: AppMode = AppMode.PRODUCTION
    web_host: str = Defaults.WEB_HOST
    web_port: int = Defaults.WEB_PORT
    log_level: str = Defaults.LOG_LEVEL
    rules: LedgerRules = field(default_factory=LedgerRules)
    demo_dataset: Path = Paths.DEMO_DATASET


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def _parse_rules(data: dict[str, Any]) -> LedgerRules:
    routes_raw = data.get("restricted_routes")
    if routes_raw is None:
        routes = _default_restricted_routes()
    elif isinstance(routes_raw, dict):
        routes = {
            str(src): tuple(str(d) for d in (dests or []))
            for src, dests in routes_raw.items()
        }
    else:
        raise SettingsLoadError("ledger.restricted_routes는 매핑이어야 합니다")

    try:
        min_desc = int(data.get("min_description_length", Defaults.MIN_DESCRIPTION_LENGTH))
        min_reason = int(data.get("min_reason_length", Defaults.MIN_REASON_LENGTH))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"ledger 최소 길이 설정 오류: {e}") from e

    return LedgerRules(
        min_description_length=min_desc,
        min_reason_length=min_reason,
        restricted_routes=routes,
        strict_expense_balance=bool(data.get("strict_expense_balance", False)),
        strict_contribution_balance=bool(data.get("strict_contribution_balance", False)),
    )


def load_settings(path: Path | None = None) -> AppSettings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppSettings 인스턴스 (누락된 섹션은 기본값)

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: 유효하지 않은 mode인 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    mode_str = data.get("mode", AppMode.PRODUCTION.value)
    try:
        mode = AppMode(mode_str)
    except ValueError as e:
        valid_modes = [m.value for m in AppMode]
        raise ValueError(
            f"유효하지 않은 mode입니다: '{mode_str}'. "
            f"유효한 값: {valid_modes}"
        ) from e

    web_config = data.get("web") or {}
    logging_config = data.get("logging") or {}
    demo_config = data.get("demo") or {}

    dataset = demo_config.get("dataset")
    demo_dataset = PROJECT_ROOT / dataset if dataset else Paths.DEMO_DATASET

    return AppSettings(
        mode=mode,
        web_host=str(web_config.get("host", Defaults.WEB_HOST)),
        web_port=int(web_config.get("port", Defaults.WEB_PORT)),
        log_level=str(logging_config.get("level", Defaults.LOG_LEVEL)).upper(),
        rules=_parse_rules(data.get("ledger") or {}),
        demo_dataset=demo_dataset,
    )


def get_db_path(mode: AppMode) -> Path:
    """모드에 따른 DB 경로 반환"""
    if mode == AppMode.PRODUCTION:
        return Paths.PROD_DB
    else:
        return Paths.DEMO_DB


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공.
    기본 경로에 파일이 없으면 기본값으로 동작한다.
    """

    _instance: "Settings | None" = None
    _settings: AppSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._settings is None:
            if settings_path is None and not Paths.SETTINGS_FILE.exists():
                logger.warning(
                    "settings.yaml 없음, 기본값 사용",
                    extra={"path": str(Paths.SETTINGS_FILE)},
                )
                self._settings = AppSettings()
            else:
                self._settings = load_settings(settings_path)

    @property
    def mode(self) -> AppMode:
        """현재 실행 모드"""
        assert self._settings is not None
        return self._settings.mode

    @property
    def rules(self) -> LedgerRules:
        """업무 규칙"""
        assert self._settings is not None
        return self._settings.rules

    @property
    def app(self) -> AppSettings:
        assert self._settings is not None
        return self._settings

    @property
    def db_path(self) -> Path:
        """현재 모드의 DB 경로"""
        return get_db_path(self.mode)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._settings = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)
    """
    return Settings(settings_path)
