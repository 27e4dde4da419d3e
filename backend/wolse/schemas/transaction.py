"""전월세 실거래 스키마"""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class ContractType(str, Enum):
    NEW = "new"  # 신규
    RENEWAL = "renewal"  # 갱신
    UNKNOWN = "unknown"  # 구 데이터 (계약구분 없음)

    @classmethod
    def from_label(cls, label: str | None) -> "ContractType":
        """MOLIT 계약구분 문자열(신규/갱신)을 변환한다."""
        text = (label or "").strip()
        if text in ("신규", "new"):
            return cls.NEW
        if text in ("갱신", "renewal"):
            return cls.RENEWAL
        return cls.UNKNOWN


@dataclass(frozen=True)
class Transaction:
    """전월세 실거래 1건 (금액은 원 단위)"""

    deposit: int  # 보증금
    monthly_rent: int  # 월세 (전세일 경우 0)
    year: int
    month: int
    day: int
    exclusive_area: float  # 전용면적 (㎡)
    building_name: str = ""
    contract_type: ContractType = ContractType.UNKNOWN
    legal_dong: str = ""  # 법정동
    floor: int = 0

    def __post_init__(self) -> None:
        if self.deposit < 0 or self.monthly_rent < 0:
            raise ValueError(
                f"보증금/월세는 음수일 수 없습니다: deposit={self.deposit}, monthly_rent={self.monthly_rent}"
            )

    @property
    def date(self) -> date:
        return date(self.year, self.month, self.day)

    @property
    def year_month(self) -> str:
        return f"{self.year}{self.month:02d}"


@dataclass(frozen=True)
class UserQuote:
    """사용자가 제시받은 보증금/월세 조건"""

    deposit: int
    monthly_rent: int

    def __post_init__(self) -> None:
        if self.deposit < 0 or self.monthly_rent < 0:
            raise ValueError("보증금/월세는 음수일 수 없습니다.")
