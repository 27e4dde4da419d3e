from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from wolse.api.deps import get_rate_config, get_transaction_source
from wolse.config import RateConfig
from wolse.main import app
from wolse.schemas.transaction import ContractType, Transaction
from wolse.tools.real_estate_api import DistrictNotFoundError

AS_OF = date(2025, 7, 15)
TEST_CONFIG = RateConfig(legal_rate_cap=4.5)


def make_tx(
    deposit_manwon: int,
    rent_manwon: int,
    *,
    year: int = 2025,
    month: int = 6,
    day: int = 15,
    area: float = 84.9,
    name: str = "래미안역삼",
    dong: str = "역삼동",
    contract_type: ContractType = ContractType.NEW,
) -> Transaction:
    """만원 단위로 거래를 만든다."""
    return Transaction(
        deposit=deposit_manwon * 10_000,
        monthly_rent=rent_manwon * 10_000,
        year=year,
        month=month,
        day=day,
        exclusive_area=area,
        building_name=name,
        contract_type=contract_type,
        legal_dong=dong,
    )


def linear_market(count: int = 6, **kwargs) -> list[Transaction]:
    """보증금 1,000만원당 월세 5만원이 줄어드는 (전환율 6%) 표본."""
    return [make_tx(1_000 * (i + 1), 100 - 5 * i, **kwargs) for i in range(count)]


class FakeSource:
    """메모리 기반 TransactionSource. 조회한 YYYYMM을 순서대로 기록한다."""

    def __init__(
        self,
        transactions: list[Transaction] | None = None,
        failing: set[str] | None = None,
        fail_all: bool = False,
        unknown_district: bool = False,
    ) -> None:
        self.by_month: dict[str, list[Transaction]] = {}
        for t in transactions or []:
            self.by_month.setdefault(t.year_month, []).append(t)
        self.failing = failing or set()
        self.fail_all = fail_all
        self.unknown_district = unknown_district
        self.calls: list[str] = []

    async def fetch_month(self, city: str, district: str, deal_ymd: str) -> list[Transaction]:
        self.calls.append(deal_ymd)
        if self.unknown_district:
            raise DistrictNotFoundError(f"법정동코드를 찾을 수 없습니다: {city} {district}")
        if self.fail_all or deal_ymd in self.failing:
            raise RuntimeError(f"upstream 503 ({deal_ymd})")
        return list(self.by_month.get(deal_ymd, []))


@pytest.fixture
def fake_source() -> FakeSource:
    """API 테스트용: 실행일 기준 이번 달 1일자 거래 6건 (전환율 6%)"""
    today = date.today()
    return FakeSource(linear_market(year=today.year, month=today.month, day=1))


@pytest_asyncio.fixture
async def client(fake_source: FakeSource) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_transaction_source] = lambda: fake_source
    app.dependency_overrides[get_rate_config] = lambda: TEST_CONFIG
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
