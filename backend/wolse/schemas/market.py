"""시장 전환율 분석 스키마"""

from dataclasses import dataclass, field
from enum import Enum

from wolse.schemas.transaction import Transaction


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INSUFFICIENT = "INSUFFICIENT"


class DataSource(str, Enum):
    BUILDING = "building"  # 단지
    DONG = "dong"  # 법정동
    DISTRICT = "district"  # 시군구


class TrendDirection(str, Enum):
    RISING = "RISING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


@dataclass(frozen=True)
class ConversionRatePair:
    """두 거래로부터 역산한 연 전환율"""

    implied_annual_rate: float  # %
    average_age_days: float
    recency_weight: float  # (0, 1]
    lower_deposit: Transaction | None = None
    higher_deposit: Transaction | None = None


@dataclass(frozen=True)
class RateStats:
    """전환율 분포 요약"""

    median: float
    weighted_mean: float
    p25: float
    p75: float


@dataclass(frozen=True)
class TrendResult:
    """시계열 추세 판정 결과"""

    direction: TrendDirection = TrendDirection.STABLE
    percentage: float = 0.0  # 기간 변화율 절대값 (%)
    r_squared: float = 0.0
    slope: float = 0.0  # 일 단위 기울기
    p_value: float = 1.0  # Mann-Kendall 양측 p-value (참고용)
    basis: str = "rate_pairs"  # rate_pairs | monthly_cost


@dataclass(frozen=True)
class MarketRateResult:
    """시장 전환율 산출 결과"""

    market_rate: float | None
    rate_p25: float | None
    rate_p75: float | None
    confidence_level: ConfidenceLevel
    data_source: DataSource
    trend: TrendResult
    legal_rate_cap: float
    transactions: tuple[Transaction, ...] = ()
    outliers_removed: int = 0
    contract_count: int = 0
    valid_pair_count: int = 0
    weighted_mean_rate: float | None = None
    non_market_removed: int = 0
    data_source_note: str = ""
    diagnostics: tuple[str, ...] = field(default_factory=tuple)

    @property
    def effective_rate(self) -> float:
        """산출 전환율, 없으면 법정 상한."""
        return self.market_rate if self.market_rate is not None else self.legal_rate_cap
