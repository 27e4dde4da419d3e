"""월세 전환율 산출 파이프라인 - 실거래 수집 → 표본 단계 선택 → 통계 → 비교/협상"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from wolse.config import RateConfig
from wolse.engine.aggregate import aggregate_rates
from wolse.engine.comparison import assess, build_comparison, savings_potential, user_implied_rate
from wolse.engine.negotiation import advise, trend_advice
from wolse.engine.outliers import filter_non_market, remove_outliers
from wolse.engine.pairs import baseline_rate, infer_rate_pairs
from wolse.engine.trend import estimate_cost_trend, estimate_trend
from wolse.schemas.comparison import QuoteAnalysis
from wolse.schemas.market import (
    ConfidenceLevel,
    DataSource,
    MarketRateResult,
    TrendResult,
)
from wolse.schemas.transaction import Transaction, UserQuote
from wolse.tools.real_estate_api import (
    DistrictNotFoundError,
    MolitRentClient,
    TransactionSource,
    match_building_name,
)

logger = logging.getLogger(__name__)

BUILDING_AREA_TOLERANCE = 0.10
FALLBACK_AREA_TOLERANCE = 0.05

NO_DATA_NOTE = "no data: 조회한 모든 기간의 실거래 수집에 실패했습니다"


# ---------------------------------------------------------------------------
# 1. 실거래 수집
# ---------------------------------------------------------------------------


def recent_months(as_of: date, count: int) -> list[str]:
    """기준일이 속한 달부터 과거로 count개월의 YYYYMM 목록 (최신순)."""
    months: list[str] = []
    year, month = as_of.year, as_of.month
    for _ in range(count):
        months.append(f"{year}{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


@dataclass
class _MonthlyCollector:
    """한 번의 호출 안에서만 쓰는 월별 수집 캐시 (같은 달을 다시 조회하지 않는다)"""

    source: TransactionSource
    city: str
    district: str
    fetched: dict[str, list[Transaction]]
    failed: set[str]

    async def collect(self, months: list[str]) -> list[Transaction]:
        """월 단위로 순차 조회한다. 실패한 달은 경고 로그 후 건너뛴다."""
        for ymd in months:
            if ymd in self.fetched or ymd in self.failed:
                continue
            try:
                self.fetched[ymd] = await self.source.fetch_month(self.city, self.district, ymd)
                logger.debug("  [%s] %d건 수집", ymd, len(self.fetched[ymd]))
            except DistrictNotFoundError:
                raise
            except Exception as e:
                self.failed.add(ymd)
                logger.warning("실거래 조회 실패 (%s %s, %s): %s", self.city, self.district, ymd, e)

        result: list[Transaction] = []
        for ymd in months:
            result.extend(self.fetched.get(ymd, []))
        return result

    @property
    def has_data(self) -> bool:
        return bool(self.fetched)


# ---------------------------------------------------------------------------
# 2. 표본 단계 선택 (단지 → 법정동 → 시군구)
# ---------------------------------------------------------------------------


def filter_by_area(
    transactions: list[Transaction],
    target_area: float,
    tolerance: float,
) -> list[Transaction]:
    """면적 ±tolerance 범위 내 거래만 남긴다."""
    if target_area <= 0:
        return list(transactions)
    return [
        t
        for t in transactions
        if t.exclusive_area > 0 and abs(t.exclusive_area - target_area) <= target_area * tolerance
    ]


def filter_by_building(transactions: list[Transaction], building_name: str) -> list[Transaction]:
    return [t for t in transactions if match_building_name(t.building_name, building_name)]


def filter_by_dong(transactions: list[Transaction], dong: str) -> list[Transaction]:
    """법정동 일치 또는 포함 관계인 거래만 남긴다."""
    if not dong:
        return []
    return [t for t in transactions if t.legal_dong == dong or dong in t.legal_dong]


def select_tier(
    data_source: DataSource,
    transactions: list[Transaction],
    building_name: str,
    dong: str,
    exclusive_area: float,
) -> list[Transaction]:
    """단계별 후보 거래: 단지는 단지명 + 면적 ±10%, 동/구는 면적 ±5%."""
    match data_source:
        case DataSource.BUILDING:
            candidates = filter_by_building(transactions, building_name)
            return filter_by_area(candidates, exclusive_area, BUILDING_AREA_TOLERANCE)
        case DataSource.DONG:
            candidates = filter_by_dong(transactions, dong)
            return filter_by_area(candidates, exclusive_area, FALLBACK_AREA_TOLERANCE)
        case _:
            return filter_by_area(transactions, exclusive_area, FALLBACK_AREA_TOLERANCE)


def _data_source_note(
    data_source: DataSource,
    contract_count: int,
    clean_count: int,
    outliers_removed: int,
    building_name: str,
    dong: str,
    district: str,
) -> str:
    outlier_text = f", 이상치 {outliers_removed}건 제외" if outliers_removed else ""
    match data_source:
        case DataSource.BUILDING:
            return f"'{building_name}' 단지 실거래 {contract_count}건 중 {clean_count}건 사용{outlier_text}"
        case DataSource.DONG:
            return f"단지 거래 부족으로 {dong} 유사 면적 실거래 {clean_count}건 사용{outlier_text}"
        case _:
            return f"동 거래 부족으로 {district} 유사 면적 실거래 {clean_count}건 사용{outlier_text}"


def _insufficient(
    config: RateConfig,
    data_source: DataSource,
    note: str,
    diagnostics: list[str],
    transactions: list[Transaction] | None = None,
    contract_count: int = 0,
    non_market_removed: int = 0,
) -> MarketRateResult:
    """표본 부족 결과. 수집된 시장 거래는 사용자 조건 비교에 쓰도록 함께 돌려준다."""
    cap = config.legal_rate_cap
    return MarketRateResult(
        market_rate=cap,
        rate_p25=cap,
        rate_p75=cap,
        confidence_level=ConfidenceLevel.INSUFFICIENT,
        data_source=data_source,
        trend=TrendResult(),
        legal_rate_cap=cap,
        transactions=tuple(transactions or ()),
        contract_count=contract_count,
        non_market_removed=non_market_removed,
        data_source_note=note,
        diagnostics=tuple(diagnostics),
    )


# ---------------------------------------------------------------------------
# 3. 시장 전환율 산출
# ---------------------------------------------------------------------------


async def calculate_market_rate(
    city: str,
    district: str,
    neighborhood: str,
    building_name: str,
    exclusive_area: float,
    months_back: int = 6,
    *,
    source: TransactionSource | None = None,
    config: RateConfig | None = None,
    as_of: date | None = None,
) -> MarketRateResult:
    """단지 → 법정동 → 시군구 순으로 충분한 표본을 찾아 시장 전환율을 산출한다.

    모든 단계가 부족하면 법정 상한을 INSUFFICIENT로 반환한다. 데이터 품질 문제로
    예외를 던지지 않으며, 단계별 판단 내역은 diagnostics에 담아 돌려준다.

    Raises:
        DistrictNotFoundError: 시군구를 해석할 수 없음 (입력 오류)
    """
    config = config or RateConfig.from_settings()
    source = source or MolitRentClient()
    as_of = as_of or date.today()
    extended_months = max(months_back, config.fallback_months_back)

    collector = _MonthlyCollector(source, city, district, fetched={}, failed=set())
    diagnostics: list[str] = []
    logger.info("시장 전환율 산출: %s %s %s '%s' %.1f㎡", city, district, neighborhood, building_name, exclusive_area)

    selected: list[Transaction] = []
    data_source = DataSource.BUILDING
    non_market_removed = 0
    tier_count = 0
    kept: list[Transaction] = []
    for data_source in (DataSource.BUILDING, DataSource.DONG, DataSource.DISTRICT):
        # 단지는 최근 months_back개월, 동/구는 확장 기간
        window = months_back if data_source == DataSource.BUILDING else extended_months
        pool = await collector.collect(recent_months(as_of, window))
        candidates = select_tier(data_source, pool, building_name, neighborhood, exclusive_area)
        kept, renewals, public_housing = filter_non_market(candidates)
        non_market_removed = len(renewals) + len(public_housing)
        tier_count = len(candidates)
        diagnostics.append(
            f"{data_source.value}: 후보 {len(candidates)}건, 갱신 {len(renewals)}건·임대 {len(public_housing)}건 제외 → {len(kept)}건"
        )
        if len(kept) >= config.min_transactions:
            selected = kept
            break
    else:
        if not collector.has_data:
            logger.warning("실거래 데이터 없음: %s %s (전 기간 조회 실패)", city, district)
            diagnostics.append(NO_DATA_NOTE)
            return _insufficient(config, data_source, NO_DATA_NOTE, diagnostics)
        note = (
            f"데이터 부족: {district} 최근 {extended_months}개월 유사 면적 월세 거래가 "
            f"{config.min_transactions}건 미만입니다 (법정 상한 {config.legal_rate_cap:.1f}% 적용)"
        )
        logger.info("표본 부족 → 법정 상한 적용 (%s)", data_source.value)
        return _insufficient(config, data_source, note, diagnostics, kept, tier_count, non_market_removed)

    k = config.building_iqr_multiplier if data_source == DataSource.BUILDING else config.fallback_iqr_multiplier
    clean, removed = remove_outliers(selected, data_source, multiplier=k)
    pairs = infer_rate_pairs(clean, as_of, config.min_pair_deposit_gap, config.max_plausible_rate)
    diagnostics.append(f"이상치 {len(removed)}건 제거 (k={k}), 유효 전환율 쌍 {len(pairs)}개")
    note = _data_source_note(
        data_source, len(selected), len(clean), len(removed), building_name, neighborhood, district
    )

    if not pairs:
        rate = baseline_rate(clean, config.max_plausible_rate)
        trend_rate = rate if rate is not None else config.legal_rate_cap
        diagnostics.append(
            f"기준 전환율(최고/최저 보증금): {rate:.2f}%" if rate is not None else "기준 전환율 산출 불가"
        )
        logger.info("유효 쌍 없음 → 기준 전환율 %s", f"{rate:.2f}%" if rate is not None else "없음")
        return MarketRateResult(
            market_rate=rate,
            rate_p25=rate,
            rate_p75=rate,
            confidence_level=ConfidenceLevel.LOW,
            data_source=data_source,
            trend=estimate_cost_trend(clean, trend_rate, as_of),
            legal_rate_cap=config.legal_rate_cap,
            transactions=tuple(clean),
            outliers_removed=len(removed),
            contract_count=len(selected),
            valid_pair_count=0,
            non_market_removed=non_market_removed,
            data_source_note=note + " (비교 가능한 거래쌍 없음)",
            diagnostics=tuple(diagnostics),
        )

    stats = aggregate_rates(pairs)
    if data_source == DataSource.BUILDING:
        confidence = (
            ConfidenceLevel.HIGH if len(clean) >= config.high_confidence_count else ConfidenceLevel.MEDIUM
        )
    else:
        confidence = ConfidenceLevel.LOW

    trend = estimate_trend(pairs)
    diagnostics.append(
        f"전환율 중앙값 {stats.median:.2f}% (P25 {stats.p25:.2f}%, P75 {stats.p75:.2f}%), "
        f"추세 {trend.direction.value} {trend.percentage:.1f}% (R² {trend.r_squared:.2f})"
    )
    logger.info(
        "시장 전환율 %.2f%% [%s, %s] 쌍 %d개", stats.median, data_source.value, confidence.value, len(pairs)
    )
    return MarketRateResult(
        market_rate=stats.median,
        rate_p25=stats.p25,
        rate_p75=stats.p75,
        confidence_level=confidence,
        data_source=data_source,
        trend=trend,
        legal_rate_cap=config.legal_rate_cap,
        transactions=tuple(clean),
        outliers_removed=len(removed),
        contract_count=len(selected),
        valid_pair_count=len(pairs),
        weighted_mean_rate=stats.weighted_mean,
        non_market_removed=non_market_removed,
        data_source_note=note,
        diagnostics=tuple(diagnostics),
    )


# ---------------------------------------------------------------------------
# 4. 사용자 조건 분석
# ---------------------------------------------------------------------------


async def analyze_quote(
    city: str,
    district: str,
    neighborhood: str,
    building_name: str,
    exclusive_area: float,
    quote: UserQuote,
    *,
    source: TransactionSource | None = None,
    config: RateConfig | None = None,
    as_of: date | None = None,
    months_back: int = 6,
) -> QuoteAnalysis:
    """시장 전환율 산출 후 사용자 조건의 적정성 판정과 협상 전략을 만든다."""
    config = config or RateConfig.from_settings()
    market = await calculate_market_rate(
        city,
        district,
        neighborhood,
        building_name,
        exclusive_area,
        months_back,
        source=source,
        config=config,
        as_of=as_of,
    )

    comparison = build_comparison(
        quote,
        list(market.transactions),
        market.outliers_removed,
        annual_rate=market.effective_rate,
        min_deposit_gap=config.regression_min_deposit_gap,
        min_regression_count=config.regression_min_transactions,
    )
    assessment = assess(comparison)
    logger.info(
        "사용자 조건 판정: %s (기대 %d원, 실제 %d원)",
        assessment.tier.value,
        comparison.expected_rent,
        comparison.actual_rent,
    )
    return QuoteAnalysis(
        market=market,
        comparison=comparison,
        assessment=assessment,
        savings_potential=savings_potential(comparison, quote, market.legal_rate_cap),
        trend_advice=trend_advice(market.trend),
        user_implied_rate=user_implied_rate(comparison, market.effective_rate),
        negotiation_options=advise(quote, comparison, market),
    )
