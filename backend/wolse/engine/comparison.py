"""사용자 월세 vs 시장 기대 월세 비교 및 적정성 판정"""

from __future__ import annotations

from wolse.engine.regression import REGRESSION_MIN_DEPOSIT_GAP, fit_theil_sen, predict
from wolse.schemas.comparison import (
    Assessment,
    AssessmentTier,
    SavingsPotential,
    UserRentComparison,
)
from wolse.schemas.transaction import Transaction, UserQuote

# 판정 기준 (비율 %, 금액 원)
GOOD_DEAL_PERCENT = -10.0
GOOD_DEAL_AMOUNT = -150_000
SEVERE_PERCENT = 15.0
SEVERE_AMOUNT = 200_000
OVERPRICED_PERCENT = 5.0
OVERPRICED_AMOUNT = 100_000

# 회귀 적합에 필요한 최소 거래 수 (미만이면 평균점 환산)
MIN_REGRESSION_TRANSACTIONS = 3


def format_manwon(amount: float) -> str:
    """원 단위 금액을 만원 표기로 변환한다. (1,250,000 → '125만원')"""
    value = amount / 10_000
    if value == int(value):
        return f"{int(value):,}만원"
    return f"{value:,.1f}만원"


# ---------------------------------------------------------------------------
# 1. 비교
# ---------------------------------------------------------------------------


def compare_rent(
    quote: UserQuote,
    expected_rent: float,
    *,
    mean_deposit: float = 0.0,
    mean_rent: float = 0.0,
    clean_count: int = 0,
    outliers_removed: int = 0,
) -> UserRentComparison:
    """기대 월세 대비 실제 월세 차이를 계산한다 (기대 월세 <= 0이면 비율 0)."""
    expected = round(expected_rent)
    difference = quote.monthly_rent - expected
    percent = difference / expected * 100 if expected > 0 else 0.0
    return UserRentComparison(
        expected_rent=expected,
        actual_rent=quote.monthly_rent,
        rent_difference=difference,
        rent_difference_percent=percent,
        mean_deposit=mean_deposit,
        mean_rent=mean_rent,
        clean_transaction_count=clean_count,
        outliers_removed=outliers_removed,
    )


def build_comparison(
    quote: UserQuote,
    transactions: list[Transaction],
    outliers_removed: int = 0,
    *,
    annual_rate: float | None = None,
    min_deposit_gap: int = REGRESSION_MIN_DEPOSIT_GAP,
    min_regression_count: int = MIN_REGRESSION_TRANSACTIONS,
) -> UserRentComparison:
    """정제된 거래로 Theil-Sen 회귀를 적합하고 사용자 보증금에서의 기대 월세와 비교한다.

    거래가 min_regression_count건 미만이면 회귀 대신 평균점에서 전환율로 환산한다.
        기대 월세 = 평균 월세 + 전환율 / 12 / 100 × (평균 보증금 - 사용자 보증금)
    거래가 아예 없으면 기대 월세 = 실제 월세.
    """
    if not transactions:
        return compare_rent(
            quote,
            quote.monthly_rent,
            mean_deposit=quote.deposit,
            mean_rent=quote.monthly_rent,
        )

    n = len(transactions)
    mean_deposit = sum(t.deposit for t in transactions) / n

    if n < min_regression_count and annual_rate is not None:
        mean_rent = sum(t.monthly_rent for t in transactions) / n
        expected = mean_rent + annual_rate / 12 / 100 * (mean_deposit - quote.deposit)
        return compare_rent(
            quote,
            expected if expected >= 0 else mean_rent,
            mean_deposit=mean_deposit,
            mean_rent=mean_rent,
            clean_count=n,
            outliers_removed=outliers_removed,
        )

    fit = fit_theil_sen(transactions, min_deposit_gap)
    return compare_rent(
        quote,
        predict(fit, quote.deposit),
        mean_deposit=mean_deposit,
        mean_rent=fit.mean_rent,
        clean_count=n,
        outliers_removed=outliers_removed,
    )


# ---------------------------------------------------------------------------
# 2. 판정
# ---------------------------------------------------------------------------


def classify(comparison: UserRentComparison) -> AssessmentTier:
    """비율과 금액을 함께 보는 혼합 기준으로 판정한다 (앞 조건 우선).

    - GOOD_DEAL: 비율 <= -10% 또는 금액 <= -15만원 (둘 중 하나)
    - SEVERELY_OVERPRICED: 비율 > 15% 그리고 금액 > 20만원
    - OVERPRICED: 비율 > 5% 그리고 금액 > 10만원
    - 그 외 FAIR
    """
    pct = comparison.rent_difference_percent
    diff = comparison.rent_difference

    if pct <= GOOD_DEAL_PERCENT or diff <= GOOD_DEAL_AMOUNT:
        return AssessmentTier.GOOD_DEAL
    if pct > SEVERE_PERCENT and diff > SEVERE_AMOUNT:
        return AssessmentTier.SEVERELY_OVERPRICED
    if pct > OVERPRICED_PERCENT and diff > OVERPRICED_AMOUNT:
        return AssessmentTier.OVERPRICED
    return AssessmentTier.FAIR


def assess(comparison: UserRentComparison) -> Assessment:
    """판정 등급과 설명 문구를 생성한다."""
    tier = classify(comparison)
    expected = format_manwon(comparison.expected_rent)
    actual = format_manwon(comparison.actual_rent)
    gap = format_manwon(abs(comparison.rent_difference))
    pct = abs(comparison.rent_difference_percent)

    match tier:
        case AssessmentTier.GOOD_DEAL:
            details = f"시장 기대 월세 {expected}보다 월 {gap}({pct:.0f}%) 저렴합니다. 좋은 조건입니다."
        case AssessmentTier.SEVERELY_OVERPRICED:
            details = f"시장 기대 월세 {expected}보다 월 {gap}({pct:.0f}%) 비쌉니다. 적극적인 협상을 권장합니다."
        case AssessmentTier.OVERPRICED:
            details = f"시장 기대 월세 {expected}보다 월 {gap}({pct:.0f}%) 비쌉니다. 협상 여지가 있습니다."
        case _:
            if comparison.rent_difference <= 0:
                details = f"월세 {actual}는 시장 기대 월세 {expected} 수준이거나 약간 낮습니다. 적정한 조건입니다."
            else:
                details = f"월세 {actual}는 시장 기대 월세 {expected}와 비슷합니다(+{gap}). 정상 범위입니다."
    return Assessment(tier=tier, details=details)


# ---------------------------------------------------------------------------
# 3. 절감액 / 사용자 환산 전환율
# ---------------------------------------------------------------------------


def savings_potential(
    comparison: UserRentComparison,
    quote: UserQuote,
    legal_rate_cap: float,
) -> SavingsPotential:
    """시장 기대 월세 및 법정 상한 기준 연간 절감 가능액을 계산한다."""
    vs_market = max(0, comparison.rent_difference * 12)

    deposit_gap = comparison.mean_deposit - quote.deposit
    expected_at_legal = comparison.mean_rent + legal_rate_cap / 12 / 100 * deposit_gap
    vs_legal = max(0.0, (quote.monthly_rent - expected_at_legal) * 12)

    return SavingsPotential(vs_market=round(vs_market), vs_legal=round(vs_legal))


def user_implied_rate(comparison: UserRentComparison, market_rate: float) -> float:
    """실제/기대 월세 비율로 사용자 조건의 환산 전환율을 근사한다."""
    if comparison.expected_rent <= 0:
        return market_rate
    return market_rate * comparison.actual_rent / comparison.expected_rent
