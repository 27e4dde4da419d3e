"""거래쌍 기반 전환율 역산"""

from __future__ import annotations

from datetime import date

from wolse.schemas.market import ConversionRatePair
from wolse.schemas.transaction import Transaction

MIN_PAIR_DEPOSIT_GAP = 5_000_000  # 500만원
MAX_PLAUSIBLE_RATE = 15.0  # %
DAYS_PER_MONTH = 30
RECENCY_DECAY = 0.2


def age_in_days(t: Transaction, as_of: date) -> float:
    """기준일로부터 경과 일수 (미래 날짜는 0)."""
    return float(max((as_of - t.date).days, 0))


def recency_weight(age_days: float) -> float:
    """weight = 1 / (1 + 경과개월 × 0.2)"""
    months_ago = age_days / DAYS_PER_MONTH
    return 1 / (1 + months_ago * RECENCY_DECAY)


def implied_rate(low: Transaction, high: Transaction) -> float:
    """보증금 차이 대비 월세 차이로 연 전환율(%)을 계산한다.

    rate = (월세_low - 월세_high) × 12 / (보증금_high - 보증금_low) × 100
    """
    return (low.monthly_rent - high.monthly_rent) * 12 / (high.deposit - low.deposit) * 100


def infer_rate_pairs(
    transactions: list[Transaction],
    as_of: date | None = None,
    min_deposit_gap: int = MIN_PAIR_DEPOSIT_GAP,
    max_rate: float = MAX_PLAUSIBLE_RATE,
) -> list[ConversionRatePair]:
    """모든 거래쌍에서 유효한 전환율을 추출한다.

    조건:
    - 같은 단지명 (단지가 다르면 입지·연식 차이가 전환율에 섞인다)
    - 보증금 차이 >= 500만원
    - 두 거래 모두 월세 > 0
    - 결과 전환율이 [0, 15]% 범위 (보증금이 많은데 월세도 높은 쌍은 음수로 제외)
    """
    as_of = as_of or date.today()
    ages = [age_in_days(t, as_of) for t in transactions]
    pairs: list[ConversionRatePair] = []

    n = len(transactions)
    for i in range(n):
        t1 = transactions[i]
        if t1.monthly_rent <= 0:
            continue
        for j in range(i + 1, n):
            t2 = transactions[j]
            if t2.monthly_rent <= 0 or t2.building_name != t1.building_name:
                continue
            if abs(t1.deposit - t2.deposit) < min_deposit_gap:
                continue

            low, high = (t1, t2) if t1.deposit < t2.deposit else (t2, t1)
            rate = implied_rate(low, high)
            if rate < 0 or rate > max_rate:
                continue

            avg_age = (ages[i] + ages[j]) / 2
            pairs.append(
                ConversionRatePair(
                    implied_annual_rate=rate,
                    average_age_days=avg_age,
                    recency_weight=recency_weight(avg_age),
                    lower_deposit=low,
                    higher_deposit=high,
                )
            )
    return pairs


def baseline_rate(
    transactions: list[Transaction],
    max_rate: float = MAX_PLAUSIBLE_RATE,
) -> float | None:
    """유효 쌍이 없을 때 최고/최저 보증금 거래만으로 전환율을 추정한다."""
    if len(transactions) < 2:
        return None
    ordered = sorted(transactions, key=lambda t: t.deposit)
    low, high = ordered[0], ordered[-1]

    deposit_diff = high.deposit - low.deposit
    rent_diff = low.monthly_rent - high.monthly_rent
    if deposit_diff <= 0 or rent_diff <= 0:
        return None

    rate = rent_diff * 12 / deposit_diff * 100
    if rate > max_rate:
        return None
    return rate
