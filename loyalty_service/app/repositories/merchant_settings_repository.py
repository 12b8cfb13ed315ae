from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import MERCHANT_SETTINGS_COLLECTION

from .documents.merchant_settings_document import MerchantSettingsDocument
from .interfaces import MerchantSettingsRepositoryInterface
from ..models.merchant_settings import MerchantLoyaltySettings


class MerchantSettingsRepository(MerchantSettingsRepositoryInterface):
    """merchant_loyalty_settings 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database[MERCHANT_SETTINGS_COLLECTION]

    @staticmethod
    def _from_document(doc: dict) -> MerchantLoyaltySettings:
        return MerchantSettingsDocument.model_validate(doc).to_domain()

    def find(self, merchant: str) -> MerchantLoyaltySettings | None:
        doc = self._col.find_one({"merchant": merchant})
        if not doc:
            return None
        return self._from_document(doc)

    def create_if_absent(
        self, settings: MerchantLoyaltySettings
    ) -> MerchantLoyaltySettings:
        now = datetime.now(timezone.utc)
        payload = MerchantSettingsDocument.from_domain(
            settings.model_copy(update={"created_at": now, "updated_at": now})
        ).to_mongo_record()

        try:
            self._col.update_one(
                {"merchant": settings.merchant},
                {"$setOnInsert": payload},
                upsert=True,
            )
        except DuplicateKeyError:
            # 동시에 들어온 다른 요청이 먼저 만들었다 -> 그 값을 그대로 쓴다
            pass

        doc = self._col.find_one({"merchant": settings.merchant})
        if not doc:
            raise RuntimeError(
                f"merchant settings missing right after upsert: {settings.merchant}"
            )
        return self._from_document(doc)

    def save(self, settings: MerchantLoyaltySettings) -> MerchantLoyaltySettings:
        now = datetime.now(timezone.utc)
        record = MerchantSettingsDocument.from_domain(
            settings.model_copy(
                update={"created_at": settings.created_at or now, "updated_at": now}
            )
        ).to_mongo_record()
        created_at = record.pop("created_at")
        record.pop("_id", None)

        doc = self._col.find_one_and_update(
            {"merchant": settings.merchant},
            {"$set": record, "$setOnInsert": {"created_at": created_at}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._from_document(doc)
