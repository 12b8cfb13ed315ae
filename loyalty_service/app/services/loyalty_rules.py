"""주문 금액 <-> 포인트 계산 규칙.

저장소를 모르는 순수 함수들이다. 금액은 Decimal(BRL)로 다룬다.

- 적립: 주문 금액 x 기본 배수 x (요일 배수) x (시간대 배수), 최소 주문 금액 미만이면 0,
  주문당 상한으로 자른 뒤 내림.
- 사용: 1 포인트 = R$0.10, 할인은 주문 금액의 50% 까지.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_FLOOR, Decimal
from zoneinfo import ZoneInfo

from ..models.merchant_settings import MerchantLoyaltySettings


POINT_VALUE = Decimal("0.10")
MAX_DISCOUNT_RATIO = Decimal("0.5")
CENT = Decimal("0.01")

# datetime.weekday() 순서 (월요일=0)
WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


def _dec(value: float | int) -> Decimal:
    # float 이진 표현 오차(0.1 -> 0.1000000000000000055...)를 피한다.
    return Decimal(str(value))


def time_period_of(hour: int) -> str | None:
    if 9 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return None


def calculate_points_to_earn(
    settings: MerchantLoyaltySettings,
    order_amount: Decimal,
    at: datetime | None = None,
) -> int:
    """주문 하나로 적립될 포인트. at 이 없으면 현재 시각, naive 면 UTC 로 본다."""

    if not settings.loyalty_enabled or order_amount <= 0:
        return 0
    if order_amount < _dec(settings.min_order_amount):
        return 0

    moment = at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(settings.timezone))

    points = order_amount * _dec(settings.base_points_per_real)

    if settings.special_days_enabled:
        points *= _dec(getattr(settings.special_days, WEEKDAYS[local.weekday()]))

    if settings.time_periods_enabled:
        period = time_period_of(local.hour)
        if period is not None:
            points *= _dec(getattr(settings.time_periods, period))

    points = min(points, Decimal(settings.max_points_per_order))
    return int(points.to_integral_value(rounding=ROUND_FLOOR))


def max_redeemable_points(order_amount: Decimal) -> int:
    """이 주문에 쓸 수 있는 최대 포인트 (할인 상한 50%)."""

    if order_amount <= 0:
        return 0
    cap = order_amount * MAX_DISCOUNT_RATIO / POINT_VALUE
    return int(cap.to_integral_value(rounding=ROUND_FLOOR))


@dataclass(frozen=True, slots=True)
class Redemption:
    points_used: int
    discount: Decimal
    final_amount: Decimal


def redemption_for(order_amount: Decimal, points_used: int) -> Redemption:
    discount = (POINT_VALUE * points_used).quantize(CENT)
    final_amount = max(order_amount - discount, Decimal("0")).quantize(CENT)
    return Redemption(
        points_used=points_used, discount=discount, final_amount=final_amount
    )
