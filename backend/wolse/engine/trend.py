"""시계열 추세 판정 - OLS 적합 + 단계별 유의성 규칙"""

from __future__ import annotations

import math
from datetime import date

from wolse.engine.pairs import age_in_days
from wolse.schemas.market import ConversionRatePair, TrendDirection, TrendResult
from wolse.schemas.transaction import Transaction

MIN_TREND_POINTS = 3

# (변화율 절대값 하한, R² 하한) - 적합도가 낮을수록 더 큰 변화가 필요하다
SIGNIFICANCE_TIERS: tuple[tuple[float, float], ...] = (
    (15.0, float("-inf")),
    (10.0, 0.1),
    (5.0, 0.3),
)


# ---------------------------------------------------------------------------
# 1. 회귀/검정 유틸리티
# ---------------------------------------------------------------------------


def fit_line(xs: list[float], ys: list[float]) -> tuple[float, float, float]:
    """최소제곱 직선 y = slope·x + intercept 를 적합한다.

    Returns:
        (slope, intercept, r_squared)  r_squared는 [0, 1]로 제한
    """
    n = len(xs)
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    sxx = sum((x - mean_x) ** 2 for x in xs)
    sxy = sum((x - mean_x) * (y - mean_y) for x, y in zip(xs, ys))

    slope = sxy / sxx if sxx > 0 else 0.0
    intercept = mean_y - slope * mean_x

    ss_total = sum((y - mean_y) ** 2 for y in ys)
    if ss_total <= 0:
        return slope, intercept, 0.0
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in zip(xs, ys))
    r_squared = 1 - ss_residual / ss_total
    return slope, intercept, min(max(r_squared, 0.0), 1.0)


def _normal_cdf(z: float) -> float:
    return 0.5 * (1 + math.erf(z / math.sqrt(2)))


def mann_kendall(xs: list[float], ys: list[float]) -> float:
    """Mann-Kendall 단조 추세 검정의 양측 p-value를 반환한다 (4점 미만이면 1.0)."""
    points = sorted(zip(xs, ys))
    n = len(points)
    if n < 4:
        return 1.0

    s = 0
    for i in range(n - 1):
        for j in range(i + 1, n):
            diff = points[j][1] - points[i][1]
            if diff > 0:
                s += 1
            elif diff < 0:
                s -= 1

    var_s = n * (n - 1) * (2 * n + 5) / 18
    if s > 0:
        z = (s - 1) / math.sqrt(var_s)
    elif s < 0:
        z = (s + 1) / math.sqrt(var_s)
    else:
        z = 0.0
    return 2 * (1 - _normal_cdf(abs(z)))


# ---------------------------------------------------------------------------
# 2. 방향 판정
# ---------------------------------------------------------------------------


def classify_trend(percentage_change: float, r_squared: float) -> TrendDirection:
    """변화율 크기와 적합도를 함께 보고 방향을 판정한다.

    - |변화율| > 15%
    - |변화율| > 10% 이고 R² > 0.1
    - |변화율| > 5% 이고 R² > 0.3
    중 하나를 만족해야 상승/하락, 나머지는 보합.
    """
    magnitude = abs(percentage_change)
    significant = any(
        magnitude > min_change and r_squared > min_r2
        for min_change, min_r2 in SIGNIFICANCE_TIERS
    )
    if not significant:
        return TrendDirection.STABLE
    return TrendDirection.RISING if percentage_change > 0 else TrendDirection.DECLINING


def _trend_from_series(xs: list[float], ys: list[float], basis: str) -> TrendResult:
    slope, intercept, r_squared = fit_line(xs, ys)
    first = intercept + slope * min(xs)
    last = intercept + slope * max(xs)
    change = (last - first) / first * 100 if first > 0 else 0.0

    return TrendResult(
        direction=classify_trend(change, r_squared),
        percentage=abs(change),
        r_squared=r_squared,
        slope=slope,
        p_value=mann_kendall(xs, ys),
        basis=basis,
    )


# ---------------------------------------------------------------------------
# 3. 추세 추정
# ---------------------------------------------------------------------------


def estimate_trend(pairs: list[ConversionRatePair]) -> TrendResult:
    """전환율 쌍을 시간순(x=0이 가장 오래된 쌍)으로 놓고 추세를 추정한다."""
    if len(pairs) < MIN_TREND_POINTS:
        return TrendResult()

    max_age = max(p.average_age_days for p in pairs)
    xs = [max_age - p.average_age_days for p in pairs]
    ys = [p.implied_annual_rate for p in pairs]
    return _trend_from_series(xs, ys, basis="rate_pairs")


def monthly_cost(t: Transaction, annual_rate: float) -> float:
    """보증금 기회비용을 포함한 월 환산 비용 = 월세 + 보증금 × 전환율 / 12"""
    return t.monthly_rent + t.deposit * annual_rate / 100 / 12


def estimate_cost_trend(
    transactions: list[Transaction],
    annual_rate: float,
    as_of: date | None = None,
) -> TrendResult:
    """전환율 쌍이 없을 때 거래별 월 환산 비용으로 추세를 추정한다."""
    if len(transactions) < MIN_TREND_POINTS:
        return TrendResult(basis="monthly_cost")

    as_of = as_of or date.today()
    ages = [age_in_days(t, as_of) for t in transactions]
    max_age = max(ages)
    xs = [max_age - age for age in ages]
    ys = [monthly_cost(t, annual_rate) for t in transactions]
    return _trend_from_series(xs, ys, basis="monthly_cost")
