from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field, StrictInt

from common.types.datetime import UtcDateTime

from ...models.loyalty import POINTS_MAX
from ...models.merchant_settings import (
    DayMultipliers,
    TimePeriodMultipliers,
    TimezoneName,
)


class EnrollRequest(BaseModel):
    identity: str = Field(min_length=1)


class EnrollResponse(BaseModel):
    identity: str
    merchant: str
    points: int
    created: bool


class AdjustPointsRequest(BaseModel):
    """포인트 증감 요청. 음수면 차감 (잔액은 0 아래로 내려가지 않는다)."""

    delta: StrictInt = Field(ge=-POINTS_MAX - 1, le=POINTS_MAX)


class BalanceResponse(BaseModel):
    identity: str
    merchant: str
    points: int


class LoyaltyAccountItem(BaseModel):
    merchant: str
    points: int
    last_updated: UtcDateTime


class ListLoyaltyAccountsResponse(BaseModel):
    identity: str
    items: list[LoyaltyAccountItem]


class OrderRequest(BaseModel):
    # 주문 금액(BRL). 단말 입력 실수로 터무니없는 값이 들어오는 것을 막는다.
    order_amount: Decimal = Field(gt=0, le=Decimal("1000000"), decimal_places=2)


class EarnResponse(BaseModel):
    identity: str
    merchant: str
    points_earned: int
    points: int


class RedeemResponse(BaseModel):
    identity: str
    merchant: str
    points_used: int
    discount: Decimal
    final_amount: Decimal
    points: int


class LoyaltySettingsResponse(BaseModel):
    merchant: str
    loyalty_enabled: bool
    base_points_per_real: float
    min_order_amount: float
    max_points_per_order: int
    special_days_enabled: bool
    special_days: DayMultipliers
    time_periods_enabled: bool
    time_periods: TimePeriodMultipliers
    timezone: str


class UpdateLoyaltySettingsRequest(BaseModel):
    """보낸 필드만 바뀐다."""

    loyalty_enabled: bool | None = None
    base_points_per_real: float | None = Field(default=None, ge=0)
    min_order_amount: float | None = Field(default=None, ge=0)
    max_points_per_order: int | None = Field(default=None, ge=0)
    special_days_enabled: bool | None = None
    special_days: DayMultipliers | None = None
    time_periods_enabled: bool | None = None
    time_periods: TimePeriodMultipliers | None = None
    timezone: TimezoneName | None = None
