"""협상 전략 및 추세 조언 생성"""

from __future__ import annotations

from wolse.engine.comparison import format_manwon
from wolse.schemas.comparison import NegotiationOption, UserRentComparison
from wolse.schemas.market import MarketRateResult, TrendDirection, TrendResult
from wolse.schemas.transaction import UserQuote

DISCOUNT_RATIO = 0.95
TREND_DISCOUNT_RATIO = 0.90
TREND_MIN_PERCENTAGE = 5.0
STRONG_TREND_PERCENTAGE = 15.0


def _non_price_options(quote: UserQuote, comparison: UserRentComparison) -> list[NegotiationOption]:
    """이미 시장 기대 이하인 경우: 가격 외 조건 협상."""
    expected = format_manwon(comparison.expected_rent)
    actual = format_manwon(quote.monthly_rent)

    def option(name: str, script: str, recommended: bool = False) -> NegotiationOption:
        return NegotiationOption(
            name=name,
            target_deposit=quote.deposit,
            target_rent=quote.monthly_rent,
            monthly_savings=0,
            yearly_savings=0,
            script=script,
            recommended=recommended,
            informational=True,
        )

    return [
        option(
            "계약기간 확보",
            f"현재 월세 {actual}는 시장 기대 월세 {expected} 이하입니다. "
            "이 조건으로 2년 계약과 갱신 시 인상 폭 합의를 요청해 보세요.",
            recommended=True,
        ),
        option(
            "수리·가전 옵션",
            "가격은 이미 좋은 편이니 입주 전 도배·장판 등 수리나 가전 옵션 제공을 요청해 보세요.",
        ),
        option(
            "입주 조건 협의",
            "입주일 조정, 관리비 일부 면제 등 입주 조건을 협의해 보세요.",
        ),
    ]


def advise(
    quote: UserQuote,
    comparison: UserRentComparison,
    market: MarketRateResult,
) -> list[NegotiationOption]:
    """비교 결과와 추세로 협상 전략을 만들고 연간 절감액 내림차순으로 정렬한다."""
    if comparison.rent_difference <= 0:
        return _non_price_options(quote, comparison)

    expected_rent = comparison.expected_rent
    market_savings = comparison.rent_difference
    rate_text = f"{market.market_rate:.1f}%" if market.market_rate is not None else "산출 불가"
    options: list[NegotiationOption] = [
        NegotiationOption(
            name="Market Rate",
            target_deposit=quote.deposit,
            target_rent=expected_rent,
            monthly_savings=market_savings,
            yearly_savings=market_savings * 12,
            script=(
                f"최근 실거래 {market.contract_count}건 기준 시장 전환율은 {rate_text}입니다. "
                f"보증금 {format_manwon(quote.deposit)} 기준 적정 월세는 {format_manwon(expected_rent)}이니 "
                "이 수준으로 조정을 요청드립니다."
            ),
            recommended=market_savings > 0,
        )
    ]

    discounted_rent = round(expected_rent * DISCOUNT_RATIO)
    discount_savings = quote.monthly_rent - discounted_rent
    if discount_savings > market_savings:
        options.append(
            NegotiationOption(
                name="Negotiated Discount",
                target_deposit=quote.deposit,
                target_rent=discounted_rent,
                monthly_savings=discount_savings,
                yearly_savings=discount_savings * 12,
                script=(
                    f"실거래 기준 적정 월세는 {format_manwon(expected_rent)}입니다. "
                    f"바로 계약 가능하니 5% 낮은 {format_manwon(discounted_rent)}을 제안드립니다."
                ),
            )
        )

    trend = market.trend
    if trend.direction == TrendDirection.DECLINING and trend.percentage > TREND_MIN_PERCENTAGE:
        aggressive_rent = round(expected_rent * TREND_DISCOUNT_RATIO)
        aggressive_savings = quote.monthly_rent - aggressive_rent
        if aggressive_savings > 0:
            options.append(
                NegotiationOption(
                    name="Trend-Based Discount",
                    target_deposit=quote.deposit,
                    target_rent=aggressive_rent,
                    monthly_savings=aggressive_savings,
                    yearly_savings=aggressive_savings * 12,
                    script=(
                        f"최근 시장 전환율이 {trend.percentage:.0f}% 하락하는 추세입니다. "
                        f"이를 반영해 시장가보다 10% 낮은 {format_manwon(aggressive_rent)}을 제안드리며, "
                        "입주일은 맞춰드릴 수 있습니다."
                    ),
                )
            )

    return sorted(options, key=lambda o: o.yearly_savings, reverse=True)


def trend_advice(trend: TrendResult) -> str:
    """추세 방향에 따른 협상 조언 문구."""
    pct = trend.percentage
    match trend.direction:
        case TrendDirection.DECLINING:
            if pct > STRONG_TREND_PERCENTAGE:
                return f"시장 전환율이 크게 하락 중입니다(-{pct:.0f}%). 임대인의 가격 결정력이 약해 협상에 유리합니다."
            return f"시장 전환율이 하락 추세입니다(-{pct:.0f}%). 협상하거나 조금 더 기다려 볼 만합니다."
        case TrendDirection.RISING:
            if pct > STRONG_TREND_PERCENTAGE:
                return f"시장 전환율이 빠르게 상승 중입니다(+{pct:.0f}%). 조건이 합리적이라면 계약을 서두르는 것이 좋습니다."
            return f"시장 전환율이 상승 추세입니다(+{pct:.0f}%). 적정한 조건이라면 계약을 진행하는 것이 좋습니다."
        case _:
            return "시장 전환율이 안정적입니다. 여유를 갖고 조건을 비교하며 협상하세요."
