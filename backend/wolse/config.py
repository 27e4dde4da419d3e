from dataclasses import dataclass
from pathlib import Path

from pydantic_settings import BaseSettings

# .env 파일 탐색: backend/.env → 프로젝트 루트/.env
_backend_dir = Path(__file__).resolve().parent.parent
_env_candidates = [_backend_dir / ".env", _backend_dir.parent / ".env"]
_env_file = next((p for p in _env_candidates if p.exists()), ".env")


class Settings(BaseSettings):
    model_config = {"env_file": str(_env_file), "env_file_encoding": "utf-8", "extra": "ignore"}

    # Application
    app_env: str = "development"
    debug: bool = True

    # 국토교통부 API
    molit_api_key: str = ""

    # 법정 전환율 상한 = min(ceiling, 한국은행 기준금리 + spread)
    bok_base_rate: float = 2.5
    legal_rate_ceiling: float = 10.0
    legal_rate_spread: float = 2.0

    # 실거래가 조회 기간 (개월)
    months_back: int = 6
    fallback_months_back: int = 12

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173"]


settings = Settings()


def legal_rate_cap(bok_base_rate: float, ceiling: float = 10.0, spread: float = 2.0) -> float:
    """주택임대차보호법상 전월세 전환율 상한(%)을 산출한다."""
    return min(ceiling, bok_base_rate + spread)


@dataclass(frozen=True)
class RateConfig:
    """전환율 엔진 설정값. 엔진 함수에 명시적으로 전달한다."""

    legal_rate_cap: float = 4.5
    min_transactions: int = 5
    min_pair_deposit_gap: int = 5_000_000
    max_plausible_rate: float = 15.0
    regression_min_deposit_gap: int = 1_000_000
    regression_min_transactions: int = 3
    building_iqr_multiplier: float = 1.5
    fallback_iqr_multiplier: float = 1.0
    high_confidence_count: int = 10
    fallback_months_back: int = 12

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> "RateConfig":
        s = s or settings
        return cls(
            legal_rate_cap=legal_rate_cap(s.bok_base_rate, s.legal_rate_ceiling, s.legal_rate_spread),
            fallback_months_back=s.fallback_months_back,
        )
