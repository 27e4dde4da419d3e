"""국토교통부 아파트 전월세 실거래가 API 클라이언트"""

from __future__ import annotations

import logging
import re
from typing import Protocol
from urllib.parse import quote, unquote, urlencode
import xml.etree.ElementTree as ET

import httpx

from wolse.config import settings
from wolse.schemas.transaction import ContractType, Transaction
from wolse.tools.address_converter import district_to_lawd_code

logger = logging.getLogger(__name__)

MOLIT_BASE_URL = "https://apis.data.go.kr/1613000"
APT_RENT_ENDPOINT = "/RTMSDataSvcAptRent/getRTMSDataSvcAptRent"


class DistrictNotFoundError(ValueError):
    """시도/시군구 명칭으로 법정동코드를 찾지 못함"""


class TransactionSource(Protocol):
    """월 단위 전월세 거래 조회 인터페이스"""

    async def fetch_month(self, city: str, district: str, deal_ymd: str) -> list[Transaction]:
        ...


# ---------------------------------------------------------------------------
# 1. XML 파싱
# ---------------------------------------------------------------------------


def _parse_int_amount(text: str | None) -> int:
    """만원 단위 금액 문자열을 원 단위 정수로 변환한다."""
    raw = (text or "0").strip().replace(",", "")
    try:
        return int(raw) * 10_000
    except ValueError:
        return 0


def _parse_float(text: str | None) -> float:
    raw = (text or "0").strip()
    try:
        return float(raw)
    except ValueError:
        return 0.0


def _parse_int(text: str | None) -> int:
    raw = (text or "0").strip()
    try:
        return int(raw)
    except ValueError:
        return 0


def _text(item: ET.Element, *tag_names: str) -> str:
    """여러 태그명 중 첫 번째로 값이 있는 것을 반환한다 (한글/영어 호환)."""
    for tag in tag_names:
        val = (item.findtext(tag) or "").strip()
        if val:
            return val
    return ""


def parse_rent_xml(xml_text: str) -> list[Transaction]:
    """전월세 API XML 응답을 Transaction 리스트로 변환한다.

    날짜가 없거나 금액이 음수로 해석되는 행은 건너뛴다. 전세(월세 0)도 포함된다.
    """
    root = ET.fromstring(xml_text)
    transactions: list[Transaction] = []
    for item in root.findall(".//item"):
        year = _parse_int(_text(item, "dealYear", "계약년도", "년"))
        month = _parse_int(_text(item, "dealMonth", "계약월", "월"))
        day = _parse_int(_text(item, "dealDay", "계약일", "일"))
        if not (year and 1 <= month <= 12 and 1 <= day <= 31):
            continue

        try:
            transactions.append(
                Transaction(
                    deposit=_parse_int_amount(_text(item, "deposit", "보증금액")),
                    monthly_rent=_parse_int_amount(_text(item, "monthlyRent", "월세금액")),
                    year=year,
                    month=month,
                    day=day,
                    exclusive_area=_parse_float(_text(item, "excluUseAr", "전용면적")),
                    building_name=_text(item, "aptNm", "단지명", "아파트"),
                    contract_type=ContractType.from_label(_text(item, "contractType", "계약구분")),
                    legal_dong=_text(item, "umdNm", "법정동"),
                    floor=_parse_int(_text(item, "floor", "층")),
                )
            )
        except ValueError:
            logger.debug("  잘못된 거래 행 건너뜀: %s-%s-%s", year, month, day)
    return transactions


# ---------------------------------------------------------------------------
# 2. 단지명 매칭
# ---------------------------------------------------------------------------


def normalize_building_name(name: str) -> str:
    """'래미안 아파트' → '래미안' (접미사 아파트/APT, 공백 제거 후 소문자)"""
    text = re.sub(r"아파트$", "", name.strip())
    text = re.sub(r"apt$", "", text, flags=re.IGNORECASE)
    return re.sub(r"\s+", "", text).lower()


def match_building_name(target: str, query: str) -> bool:
    """API 단지명(target)이 검색어(query)와 같은 단지인지 판단한다."""
    if not query:
        return False
    if target == query or target.startswith(query + "("):
        return True
    norm_target = normalize_building_name(target)
    norm_query = normalize_building_name(query)
    if not norm_query:
        return False
    return (
        norm_target == norm_query
        or norm_target.startswith(norm_query + "(")
        or norm_query in norm_target
    )


# ---------------------------------------------------------------------------
# 3. API 클라이언트
# ---------------------------------------------------------------------------


class MolitRentClient:
    """국토부 아파트 전월세 API로 월세 거래를 조회한다."""

    def __init__(self, api_key: str | None = None, timeout: float = 30) -> None:
        self.api_key = api_key if api_key is not None else settings.molit_api_key
        self.timeout = timeout

    def _build_url(self, lawd_cd: str, deal_ymd: str) -> str:
        # serviceKey의 +, /, = 등 특수문자를 percent-encoding 처리
        encoded_key = quote(unquote(self.api_key), safe="")
        other_params = urlencode({
            "LAWD_CD": lawd_cd,
            "DEAL_YMD": deal_ymd,
            "pageNo": 1,
            "numOfRows": 1000,
        })
        return f"{MOLIT_BASE_URL}{APT_RENT_ENDPOINT}?serviceKey={encoded_key}&{other_params}"

    async def fetch_month(self, city: str, district: str, deal_ymd: str) -> list[Transaction]:
        """해당 시군구·계약년월의 월세 거래(월세 > 0)를 반환한다.

        Raises:
            DistrictNotFoundError: 법정동코드를 찾을 수 없음
            httpx.HTTPError: API 호출 실패
        """
        lawd_cd = district_to_lawd_code(city, district)
        if not lawd_cd:
            raise DistrictNotFoundError(f"법정동코드를 찾을 수 없습니다: {city} {district}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(self._build_url(lawd_cd, deal_ymd))
            response.raise_for_status()

        rows = parse_rent_xml(response.text)
        wolse = [t for t in rows if t.monthly_rent > 0]
        logger.debug("  MOLIT API [%s] %s %s: 전체 %d건, 월세 %d건", deal_ymd, city, district, len(rows), len(wolse))
        return wolse
