"""월세 시장 전환율 / 사용자 조건 분석 엔드포인트"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from wolse.api.deps import get_rate_config, get_transaction_source
from wolse.config import RateConfig, settings
from wolse.engine.pipeline import analyze_quote, calculate_market_rate
from wolse.schemas.market import MarketRateResult
from wolse.schemas.transaction import UserQuote
from wolse.tools.real_estate_api import DistrictNotFoundError, TransactionSource

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class MarketRateRequest(BaseModel):
    city: str = Field(min_length=1, description="시도 (예: 서울특별시)")
    district: str = Field(min_length=1, description="시군구 (예: 강남구)")
    dong: str = Field(default="", description="법정동 (예: 역삼동)")
    apartment_name: str = Field(default="", description="단지명")
    exclusive_area: float = Field(gt=0, description="전용면적 (㎡)")
    months_back: int = Field(default_factory=lambda: settings.months_back, ge=1, le=24, description="조회 개월 수")


class QuoteRequest(MarketRateRequest):
    deposit: int = Field(gt=0, description="보증금 (원)")
    monthly_rent: int = Field(gt=0, description="월세 (원)")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _serialize_market(market: MarketRateResult) -> dict[str, Any]:
    data = asdict(market)
    data["effective_rate"] = market.effective_rate
    return data


def _bad_district(e: DistrictNotFoundError) -> HTTPException:
    logger.info("지역 해석 실패: %s", e)
    return HTTPException(status_code=400, detail=f"지원하지 않는 지역입니다. 시도/시군구 명칭을 확인해 주세요. ({e})")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/market-rate")
async def market_rate(
    body: MarketRateRequest,
    source: TransactionSource = Depends(get_transaction_source),
    config: RateConfig = Depends(get_rate_config),
) -> dict[str, Any]:
    try:
        market = await calculate_market_rate(
            body.city,
            body.district,
            body.dong,
            body.apartment_name,
            body.exclusive_area,
            body.months_back,
            source=source,
            config=config,
        )
    except DistrictNotFoundError as e:
        raise _bad_district(e) from e
    return _serialize_market(market)


@router.post("/analyze")
async def analyze(
    body: QuoteRequest,
    source: TransactionSource = Depends(get_transaction_source),
    config: RateConfig = Depends(get_rate_config),
) -> dict[str, Any]:
    quote = UserQuote(deposit=body.deposit, monthly_rent=body.monthly_rent)
    try:
        analysis = await analyze_quote(
            body.city,
            body.district,
            body.dong,
            body.apartment_name,
            body.exclusive_area,
            quote,
            source=source,
            config=config,
            months_back=body.months_back,
        )
    except DistrictNotFoundError as e:
        raise _bad_district(e) from e

    data = asdict(analysis)
    data["market"] = _serialize_market(analysis.market)
    return data
