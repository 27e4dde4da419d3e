"""사용자 조건 비교 및 협상 스키마"""

from dataclasses import dataclass, field
from enum import Enum

from wolse.schemas.market import MarketRateResult


class AssessmentTier(str, Enum):
    GOOD_DEAL = "GOOD_DEAL"
    FAIR = "FAIR"
    OVERPRICED = "OVERPRICED"
    SEVERELY_OVERPRICED = "SEVERELY_OVERPRICED"


@dataclass(frozen=True)
class UserRentComparison:
    """사용자 월세 vs 시장 기대 월세"""

    expected_rent: int
    actual_rent: int
    rent_difference: int  # actual - expected (양수 = 초과 지불)
    rent_difference_percent: float
    mean_deposit: float
    mean_rent: float
    clean_transaction_count: int
    outliers_removed: int


@dataclass(frozen=True)
class Assessment:
    tier: AssessmentTier
    details: str


@dataclass(frozen=True)
class SavingsPotential:
    """연간 절감 가능액 (원)"""

    vs_market: int = 0
    vs_legal: int = 0


@dataclass(frozen=True)
class NegotiationOption:
    """협상 전략 1건"""

    name: str
    target_deposit: int
    target_rent: int
    monthly_savings: int
    yearly_savings: int
    script: str
    recommended: bool = False
    informational: bool = False


@dataclass(frozen=True)
class QuoteAnalysis:
    """analyze_quote 최종 결과"""

    market: MarketRateResult
    comparison: UserRentComparison
    assessment: Assessment
    savings_potential: SavingsPotential
    trend_advice: str
    user_implied_rate: float
    negotiation_options: list[NegotiationOption] = field(default_factory=list)
