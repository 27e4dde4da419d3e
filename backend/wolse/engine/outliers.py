"""표본 정제 - 비시장 거래 제외 및 IQR 이상치 제거"""

from __future__ import annotations

from wolse.schemas.market import DataSource
from wolse.schemas.transaction import ContractType, Transaction

# 임대주택 식별 키워드 (시세 대비 70~80% 낮게 책정되어 시장가로 볼 수 없음)
PUBLIC_HOUSING_KEYWORDS: tuple[str, ...] = (
    "임대", "LH", "SH", "행복주택", "국민임대", "공공임대",
    "영구임대", "장기전세", "매입임대", "분납임대", "10년임대",
    "5년임대", "공공분양", "보금자리", "휴먼시아",
)

BUILDING_IQR_MULTIPLIER = 1.5
FALLBACK_IQR_MULTIPLIER = 1.0


# ---------------------------------------------------------------------------
# 1. 비시장 거래 필터
# ---------------------------------------------------------------------------


def is_public_housing(building_name: str) -> bool:
    """단지명에 임대주택 키워드가 포함되어 있는지 판단한다."""
    name = building_name.upper()
    return any(keyword.upper() in name for keyword in PUBLIC_HOUSING_KEYWORDS)


def filter_non_market(
    transactions: list[Transaction],
) -> tuple[list[Transaction], list[Transaction], list[Transaction]]:
    """갱신 계약(5% 상한 적용)과 임대주택 거래를 제외한다.

    Returns:
        (시장 거래, 갱신 계약, 임대주택 거래)
    """
    kept: list[Transaction] = []
    renewals: list[Transaction] = []
    public_housing: list[Transaction] = []
    for t in transactions:
        if t.contract_type == ContractType.RENEWAL:
            renewals.append(t)
        elif is_public_housing(t.building_name):
            public_housing.append(t)
        else:
            kept.append(t)
    return kept, renewals, public_housing


# ---------------------------------------------------------------------------
# 2. IQR 이상치 제거
# ---------------------------------------------------------------------------


def iqr_multiplier(data_source: DataSource) -> float:
    """단지 표본은 1.5×IQR, 동/구 단위 혼합 표본은 1.0×IQR."""
    if data_source == DataSource.BUILDING:
        return BUILDING_IQR_MULTIPLIER
    return FALLBACK_IQR_MULTIPLIER


def iqr_bounds(values: list[int], multiplier: float) -> tuple[float, float]:
    """순위 인덱스(보간 없음) 기반 사분위로 [하한, 상한]을 구한다."""
    ordered = sorted(values)
    n = len(ordered)
    q1 = ordered[int(n * 0.25)]
    q3 = ordered[int(n * 0.75)]
    iqr = q3 - q1
    return q1 - multiplier * iqr, q3 + multiplier * iqr


def remove_outliers(
    transactions: list[Transaction],
    data_source: DataSource = DataSource.BUILDING,
    multiplier: float | None = None,
) -> tuple[list[Transaction], list[Transaction]]:
    """보증금 또는 월세가 IQR 범위를 벗어난 거래를 제거한다.

    4건 미만이면 입력을 그대로 반환한다. 입력 순서는 유지된다.

    Returns:
        (정제된 거래, 제거된 거래)
    """
    if len(transactions) < 4:
        return list(transactions), []

    k = multiplier if multiplier is not None else iqr_multiplier(data_source)
    dep_low, dep_high = iqr_bounds([t.deposit for t in transactions], k)
    rent_low, rent_high = iqr_bounds([t.monthly_rent for t in transactions], k)

    clean: list[Transaction] = []
    removed: list[Transaction] = []
    for t in transactions:
        deposit_out = t.deposit < dep_low or t.deposit > dep_high
        rent_out = t.monthly_rent < rent_low or t.monthly_rent > rent_high
        if deposit_out or rent_out:
            removed.append(t)
        else:
            clean.append(t)
    return clean, removed
