"""API 공용 의존성 - 테스트에서 dependency_overrides로 교체한다."""

from wolse.config import RateConfig, settings
from wolse.tools.real_estate_api import MolitRentClient, TransactionSource


def get_transaction_source() -> TransactionSource:
    return MolitRentClient(api_key=settings.molit_api_key)


def get_rate_config() -> RateConfig:
    return RateConfig.from_settings(settings)
