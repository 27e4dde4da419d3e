"""보증금-월세 Theil-Sen 회귀"""

from __future__ import annotations

from dataclasses import dataclass

from wolse.engine.aggregate import lower_median
from wolse.schemas.transaction import Transaction

REGRESSION_MIN_DEPOSIT_GAP = 1_000_000  # 100만원


@dataclass(frozen=True)
class RegressionFit:
    """rent = slope × deposit + intercept (degenerate이면 평균 월세 사용)"""

    slope: float
    intercept: float
    mean_rent: float
    pair_count: int
    degenerate: bool


def fit_theil_sen(
    transactions: list[Transaction],
    min_deposit_gap: int = REGRESSION_MIN_DEPOSIT_GAP,
) -> RegressionFit:
    """Theil-Sen 추정량으로 보증금 대비 월세 직선을 적합한다.

    기울기 = 보증금 차이 > 100만원인 모든 쌍 기울기의 중앙값
    절편 = (월세_i - 기울기 × 보증금_i)의 중앙값

    표본의 약 29%까지 임의의 이상값이 섞여도 적합이 무너지지 않는다.
    2건 미만이거나 유효 쌍이 없으면 평균 월세로 대체한다.
    """
    n = len(transactions)
    mean_rent = sum(t.monthly_rent for t in transactions) / n if n else 0.0

    if n < 2:
        return RegressionFit(0.0, mean_rent, mean_rent, 0, degenerate=True)

    slopes: list[float] = []
    for i in range(n):
        ti = transactions[i]
        for j in range(i + 1, n):
            tj = transactions[j]
            dx = tj.deposit - ti.deposit
            if abs(dx) > min_deposit_gap:
                slopes.append((tj.monthly_rent - ti.monthly_rent) / dx)

    if not slopes:
        return RegressionFit(0.0, mean_rent, mean_rent, 0, degenerate=True)

    slope = lower_median(slopes)
    intercept = lower_median([t.monthly_rent - slope * t.deposit for t in transactions])
    return RegressionFit(slope, intercept, mean_rent, len(slopes), degenerate=False)


def predict(fit: RegressionFit, deposit: int) -> float:
    """보증금에 대응하는 기대 월세. 음수 예측은 평균 월세로 대체한다."""
    if fit.degenerate:
        return fit.mean_rent
    value = fit.slope * deposit + fit.intercept
    if value < 0:
        return fit.mean_rent
    return value
