"""전환율 분포 집계 (중앙값 기준)"""

from __future__ import annotations

import math

from wolse.schemas.market import ConversionRatePair, RateStats


def percentile(sorted_values: list[float], p: float) -> float:
    """선형 보간 백분위수. sorted_values는 오름차순이어야 한다."""
    if not sorted_values:
        raise ValueError("빈 목록의 백분위수는 정의되지 않습니다.")
    index = (p / 100) * (len(sorted_values) - 1)
    lower = math.floor(index)
    upper = math.ceil(index)
    if lower == upper:
        return sorted_values[lower]
    return sorted_values[lower] + (sorted_values[upper] - sorted_values[lower]) * (index - lower)


def lower_median(values: list[float]) -> float:
    """짝수 개일 때 아래쪽 중앙 원소를 반환한다 (실제 관측값 하나가 필요할 때)."""
    ordered = sorted(values)
    return ordered[(len(ordered) - 1) // 2]


def aggregate_rates(pairs: list[ConversionRatePair]) -> RateStats:
    """거래쌍 전환율을 요약한다.

    쌍끼리 거래를 공유해 독립이 아니므로 가중평균 대신 중앙값을 대표값으로 쓴다.
    가중평균은 최신성 가중치를 반영한 참고값이다.
    """
    if not pairs:
        raise ValueError("전환율 쌍이 없습니다.")

    rates = sorted(p.implied_annual_rate for p in pairs)
    total_weight = sum(p.recency_weight for p in pairs)
    weighted_mean = sum(p.implied_annual_rate * p.recency_weight for p in pairs) / total_weight

    return RateStats(
        median=percentile(rates, 50),
        weighted_mean=weighted_mean,
        p25=percentile(rates, 25),
        p75=percentile(rates, 75),
    )
