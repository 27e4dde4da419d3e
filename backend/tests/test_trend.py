"""추세 판정 테스트"""

from __future__ import annotations

import pytest
from conftest import AS_OF, make_tx

from wolse.engine.trend import (
    classify_trend,
    estimate_cost_trend,
    estimate_trend,
    fit_line,
    mann_kendall,
)
from wolse.schemas.market import ConversionRatePair, TrendDirection


def _pair(rate: float, age_days: float) -> ConversionRatePair:
    return ConversionRatePair(implied_annual_rate=rate, average_age_days=age_days, recency_weight=1.0)


# ---------------------------------------------------------------------------
# T-1: 직선 적합
# ---------------------------------------------------------------------------


def test_fit_line_exact() -> None:
    slope, intercept, r2 = fit_line([0, 1, 2, 3], [1, 3, 5, 7])
    assert slope == pytest.approx(2.0)
    assert intercept == pytest.approx(1.0)
    assert r2 == pytest.approx(1.0)


def test_fit_line_flat_series_has_zero_r2() -> None:
    slope, intercept, r2 = fit_line([0, 1, 2], [5, 5, 5])
    assert slope == 0.0
    assert intercept == 5.0
    assert r2 == 0.0


# ---------------------------------------------------------------------------
# T-2: 단계별 유의성 규칙
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("change", "r2", "expected"),
    [
        (16.0, 0.0, TrendDirection.RISING),
        (-16.0, 0.0, TrendDirection.DECLINING),
        (12.0, 0.05, TrendDirection.STABLE),
        (12.0, 0.2, TrendDirection.RISING),
        (-7.0, 0.2, TrendDirection.STABLE),
        (-7.0, 0.4, TrendDirection.DECLINING),
        (4.0, 0.99, TrendDirection.STABLE),
    ],
)
def test_classify_trend_tiers(change: float, r2: float, expected: TrendDirection) -> None:
    assert classify_trend(change, r2) == expected


def test_noisy_twelve_percent_change_is_stable() -> None:
    """R² < 0.1 이고 변화율 12%인 잡음 시계열은 보합이다."""
    xs = [0, 1, 2, 3, 4, 5, 6, 7, 8, 9]
    ys = [5.0, 9.0, 1.0, 8.0, 2.0, 9.5, 1.5, 8.5, 2.0, 8.9]
    slope, intercept, r2 = fit_line(xs, ys)
    first = intercept
    last = intercept + slope * 9
    change = (last - first) / first * 100

    assert r2 < 0.1
    assert 10 < abs(change) <= 15
    assert classify_trend(change, r2) == TrendDirection.STABLE

    # 같은 시계열을 전환율 쌍으로 넣어도 보합
    pairs = [_pair(y, (9 - x) * 10) for x, y in zip(xs, ys)]
    result = estimate_trend(pairs)
    assert result.direction == TrendDirection.STABLE
    assert result.r_squared < 0.1
    assert 10 < result.percentage <= 15
    assert result.basis == "rate_pairs"


# ---------------------------------------------------------------------------
# T-3: 전환율 쌍 추세
# ---------------------------------------------------------------------------


def test_rising_rate_pairs() -> None:
    # 오래된 쌍(180일)은 4%, 최근 쌍(0일)은 6%
    pairs = [_pair(4.0, 180), _pair(4.5, 120), _pair(5.0, 90), _pair(5.5, 60), _pair(6.0, 0)]
    trend = estimate_trend(pairs)
    assert trend.direction == TrendDirection.RISING
    assert trend.percentage > 15
    assert trend.r_squared > 0.9
    assert trend.basis == "rate_pairs"


def test_declining_percentage_is_magnitude() -> None:
    pairs = [_pair(6.0, 180), _pair(5.5, 120), _pair(5.0, 60), _pair(4.0, 0)]
    trend = estimate_trend(pairs)
    assert trend.direction == TrendDirection.DECLINING
    assert trend.percentage > 0


def test_too_few_pairs_is_stable() -> None:
    trend = estimate_trend([_pair(4.0, 100), _pair(8.0, 0)])
    assert trend.direction == TrendDirection.STABLE
    assert trend.percentage == 0.0


def test_mann_kendall_diagnostic() -> None:
    xs = list(range(10))
    assert mann_kendall(xs, [float(x) for x in xs]) < 0.01
    assert mann_kendall(xs[:3], [1.0, 2.0, 3.0]) == 1.0


# ---------------------------------------------------------------------------
# T-4: 월 환산 비용 추세 (유효 쌍이 없을 때)
# ---------------------------------------------------------------------------


def test_cost_trend_rising() -> None:
    txs = [
        make_tx(1_000, 60, month=1, day=10),
        make_tx(1_000, 70, month=3, day=10),
        make_tx(1_000, 80, month=5, day=10),
        make_tx(1_000, 90, month=7, day=10),
    ]
    trend = estimate_cost_trend(txs, 5.0, AS_OF)
    assert trend.basis == "monthly_cost"
    assert trend.direction == TrendDirection.RISING


def test_cost_trend_needs_three_points() -> None:
    trend = estimate_cost_trend([make_tx(1_000, 60)], 5.0, AS_OF)
    assert trend.direction == TrendDirection.STABLE
    assert trend.basis == "monthly_cost"
