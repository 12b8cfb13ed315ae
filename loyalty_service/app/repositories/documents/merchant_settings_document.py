from __future__ import annotations

from common.mongo.types import BaseDocument, from_object_id

from ...models.merchant_settings import (
    DEFAULT_TIMEZONE,
    DayMultipliers,
    MerchantLoyaltySettings,
    TimePeriodMultipliers,
)


class MerchantSettingsDocument(BaseDocument):
    """MongoDB merchant_loyalty_settings 컬렉션 도큐먼트 모델."""

    merchant: str
    loyalty_enabled: bool = True
    base_points_per_real: float = 1.0
    min_order_amount: float = 10.0
    max_points_per_order: int = 100
    special_days_enabled: bool = False
    special_days: DayMultipliers = DayMultipliers()
    time_periods_enabled: bool = False
    time_periods: TimePeriodMultipliers = TimePeriodMultipliers()
    timezone: str = DEFAULT_TIMEZONE

    @classmethod
    def from_domain(
        cls, settings: MerchantLoyaltySettings
    ) -> "MerchantSettingsDocument":
        return cls.model_validate(settings.model_dump(exclude={"id"}))

    def to_domain(self) -> MerchantLoyaltySettings:
        return MerchantLoyaltySettings(
            id=from_object_id(self.id),
            merchant=self.merchant,
            loyalty_enabled=self.loyalty_enabled,
            base_points_per_real=self.base_points_per_real,
            min_order_amount=self.min_order_amount,
            max_points_per_order=self.max_points_per_order,
            special_days_enabled=self.special_days_enabled,
            special_days=self.special_days,
            time_periods_enabled=self.time_periods_enabled,
            time_periods=self.time_periods,
            timezone=self.timezone,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
