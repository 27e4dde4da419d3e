"""국토부 전월세 API 클라이언트 / 법정동코드 변환 테스트

외부 API 호출은 mock 처리하여 네트워크 없이 테스트한다.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from wolse.schemas.transaction import ContractType
from wolse.tools.address_converter import district_to_lawd_code
from wolse.tools.real_estate_api import (
    DistrictNotFoundError,
    MolitRentClient,
    match_building_name,
    normalize_building_name,
    parse_rent_xml,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


SAMPLE_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<response>
  <header>
    <resultCode>000</resultCode>
    <resultMsg>OK</resultMsg>
  </header>
  <body>
    <items>
      <item>
        <aptNm>래미안역삼</aptNm>
        <contractType>신규</contractType>
        <dealDay>12</dealDay>
        <dealMonth>6</dealMonth>
        <dealYear>2025</dealYear>
        <deposit>30,000</deposit>
        <excluUseAr>84.97</excluUseAr>
        <floor>12</floor>
        <monthlyRent>120</monthlyRent>
        <umdNm>역삼동</umdNm>
      </item>
      <item>
        <aptNm>래미안역삼</aptNm>
        <contractType>갱신</contractType>
        <dealDay>3</dealDay>
        <dealMonth>6</dealMonth>
        <dealYear>2025</dealYear>
        <deposit>80,000</deposit>
        <excluUseAr>84.97</excluUseAr>
        <floor>7</floor>
        <monthlyRent>0</monthlyRent>
        <umdNm>역삼동</umdNm>
      </item>
      <item>
        <단지명>역삼자이</단지명>
        <계약년도>2025</계약년도>
        <계약월>6</계약월>
        <계약일>20</계약일>
        <보증금액>10,000</보증금액>
        <월세금액>250</월세금액>
        <전용면적>59.9</전용면적>
        <층>3</층>
        <법정동>역삼동</법정동>
      </item>
    </items>
  </body>
</response>
"""


# ---------------------------------------------------------------------------
# T-1: 법정동코드 변환
# ---------------------------------------------------------------------------


def test_district_to_lawd_code() -> None:
    assert district_to_lawd_code("서울특별시", "강남구") == "11680"
    assert district_to_lawd_code("서울", "강남구") == "11680"
    assert district_to_lawd_code("경기도", "수원시 장안구") == "41111"
    assert district_to_lawd_code("서울특별시", "없는구") is None
    assert district_to_lawd_code("화성", "강남구") is None


# ---------------------------------------------------------------------------
# T-2: XML 파싱
# ---------------------------------------------------------------------------


def test_parse_rent_xml_english_and_korean_tags() -> None:
    txs = parse_rent_xml(SAMPLE_XML)
    assert len(txs) == 3

    first = txs[0]
    assert first.deposit == 300_000_000
    assert first.monthly_rent == 1_200_000
    assert first.building_name == "래미안역삼"
    assert first.contract_type == ContractType.NEW
    assert first.exclusive_area == pytest.approx(84.97)
    assert first.legal_dong == "역삼동"
    assert first.floor == 12
    assert first.year_month == "202506"

    assert txs[1].contract_type == ContractType.RENEWAL
    assert txs[1].monthly_rent == 0

    korean = txs[2]
    assert korean.building_name == "역삼자이"
    assert korean.deposit == 100_000_000
    assert korean.monthly_rent == 2_500_000
    assert korean.contract_type == ContractType.UNKNOWN


def test_parse_rent_xml_skips_rows_without_date() -> None:
    xml = "<response><body><items><item><deposit>1,000</deposit></item></items></body></response>"
    assert parse_rent_xml(xml) == []


# ---------------------------------------------------------------------------
# T-3: 단지명 매칭
# ---------------------------------------------------------------------------


def test_normalize_building_name() -> None:
    assert normalize_building_name("래미안 역삼 아파트") == "래미안역삼"
    assert normalize_building_name("Raemian APT") == "raemian"


@pytest.mark.parametrize(
    ("target", "query", "expected"),
    [
        ("래미안역삼", "래미안역삼", True),
        ("래미안역삼(1단지)", "래미안역삼", True),
        ("래미안 역삼 아파트", "래미안역삼", True),
        ("역삼래미안역삼2차", "래미안역삼", True),
        ("역삼자이", "래미안역삼", False),
        ("래미안역삼", "", False),
    ],
)
def test_match_building_name(target: str, query: str, expected: bool) -> None:
    assert match_building_name(target, query) is expected


# ---------------------------------------------------------------------------
# T-4: API 클라이언트
# ---------------------------------------------------------------------------


def _response(text: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=text, request=httpx.Request("GET", "https://apis.data.go.kr"))


@pytest.mark.asyncio
async def test_fetch_month_keeps_wolse_only() -> None:
    client = MolitRentClient(api_key="abc+def/==")
    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=_response(SAMPLE_XML)) as mock_get:
        txs = await client.fetch_month("서울특별시", "강남구", "202506")

    assert [t.monthly_rent for t in txs] == [1_200_000, 2_500_000]
    url = mock_get.call_args.args[0]
    assert "LAWD_CD=11680" in url
    assert "DEAL_YMD=202506" in url
    assert "serviceKey=abc%2Bdef%2F%3D%3D" in url
    assert "/RTMSDataSvcAptRent/getRTMSDataSvcAptRent" in url


@pytest.mark.asyncio
async def test_fetch_month_unknown_district() -> None:
    client = MolitRentClient(api_key="key")
    with pytest.raises(DistrictNotFoundError):
        await client.fetch_month("서울특별시", "없는구", "202506")


@pytest.mark.asyncio
async def test_fetch_month_http_error_propagates() -> None:
    client = MolitRentClient(api_key="key")
    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=_response("", 503)):
        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_month("서울특별시", "강남구", "202506")
