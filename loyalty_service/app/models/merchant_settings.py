"""매장별 적립 규칙 도메인 모델.

매장(merchant)마다 하나. 처음 조회할 때 기본값으로 만들어진다.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AfterValidator, BaseModel, Field
from typing_extensions import Annotated


DEFAULT_TIMEZONE = "America/Sao_Paulo"


def validate_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"unknown timezone: {value}") from exc
    return value


TimezoneName = Annotated[str, AfterValidator(validate_timezone)]


class DayMultipliers(BaseModel):
    """요일별 적립 배수."""

    monday: float = Field(default=1.0, ge=0)
    tuesday: float = Field(default=1.0, ge=0)
    wednesday: float = Field(default=1.0, ge=0)
    thursday: float = Field(default=1.0, ge=0)
    friday: float = Field(default=1.0, ge=0)
    saturday: float = Field(default=1.0, ge=0)
    sunday: float = Field(default=1.0, ge=0)


class TimePeriodMultipliers(BaseModel):
    """시간대별 적립 배수. 아침 9-12시, 오후 12-18시, 저녁 18-22시."""

    morning: float = Field(default=1.0, ge=0)
    afternoon: float = Field(default=1.0, ge=0)
    evening: float = Field(default=1.0, ge=0)


class MerchantLoyaltySettings(BaseModel):
    id: str | None = None
    merchant: str
    loyalty_enabled: bool = True
    base_points_per_real: float = Field(default=1.0, ge=0)  # 주문 금액 1 BRL 당 포인트
    min_order_amount: float = Field(default=10.0, ge=0)
    max_points_per_order: int = Field(default=100, ge=0)
    special_days_enabled: bool = False
    special_days: DayMultipliers = Field(default_factory=DayMultipliers)
    time_periods_enabled: bool = False
    time_periods: TimePeriodMultipliers = Field(default_factory=TimePeriodMultipliers)
    # 요일/시간대는 매장 현지 시각으로 판단한다.
    timezone: TimezoneName = DEFAULT_TIMEZONE
    created_at: datetime | None = None
    updated_at: datetime | None = None
