from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends
from pymongo.database import Database

from ..config import LoyaltyConfig, get_settings
from ..models.merchant_settings import MerchantLoyaltySettings
from ..repositories.guard import get_store_database, store_guard
from ..repositories.interfaces import MerchantSettingsRepositoryInterface
from ..repositories.merchant_settings_repository import MerchantSettingsRepository


logger = logging.getLogger(__name__)


class MerchantSettingsService:
    """매장별 적립 규칙 조회/변경."""

    def __init__(
        self,
        repo: MerchantSettingsRepositoryInterface,
        *,
        default_timeout: float | None = None,
    ) -> None:
        self._repo = repo
        self._default_timeout = default_timeout

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout

    def get_settings(
        self, merchant: str, timeout: float | None = None
    ) -> MerchantLoyaltySettings:
        """매장 규칙을 반환한다. 처음 조회하는 매장이면 기본값으로 만든다."""

        with store_guard(self._timeout(timeout)):
            found = self._repo.find(merchant)
            if found is not None:
                return found
            created = self._repo.create_if_absent(
                MerchantLoyaltySettings(merchant=merchant)
            )
        logger.info("created default loyalty settings", extra={"merchant": merchant})
        return created

    def update_settings(
        self,
        merchant: str,
        changes: dict[str, Any],
        timeout: float | None = None,
    ) -> MerchantLoyaltySettings:
        """주어진 필드만 바꾼다. 중첩 배수(special_days 등)는 통째로 교체된다."""

        current = self.get_settings(merchant, timeout=timeout)
        updated = MerchantLoyaltySettings.model_validate(
            {**current.model_dump(), **changes, "merchant": merchant}
        )
        with store_guard(self._timeout(timeout)):
            saved = self._repo.save(updated)
        logger.info(
            "updated loyalty settings (%s)",
            ", ".join(sorted(changes)),
            extra={"merchant": merchant},
        )
        return saved


def get_merchant_settings_repository(
    db: Database = Depends(get_store_database),
) -> MerchantSettingsRepositoryInterface:
    """FastAPI DI용 MerchantSettingsRepository 팩토리."""

    return MerchantSettingsRepository(db)


def get_merchant_settings_service(
    repo: MerchantSettingsRepositoryInterface = Depends(
        get_merchant_settings_repository
    ),
    settings: LoyaltyConfig = Depends(get_settings),
) -> MerchantSettingsService:
    """FastAPI DI용 MerchantSettingsService 팩토리."""

    return MerchantSettingsService(
        repo, default_timeout=settings.store_timeout_seconds
    )
