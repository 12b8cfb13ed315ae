from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import USERS_COLLECTION

from .documents.user_document import TelegramUserDocument
from .interfaces import UserRepositoryInterface
from ..exceptions import DuplicateUserError
from ..models.user import TelegramUser


class UserRepository(UserRepositoryInterface):
    """users 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database[USERS_COLLECTION]

    @staticmethod
    def _from_document(doc: dict) -> TelegramUser:
        return TelegramUserDocument.model_validate(doc).to_domain()

    def find_by_telegram_id(self, telegram_id: str) -> TelegramUser | None:
        doc = self._col.find_one({"telegram_id": telegram_id})
        if not doc:
            return None
        return self._from_document(doc)

    def insert(self, user: TelegramUser) -> TelegramUser:
        payload = TelegramUserDocument.from_domain(user).to_mongo_record()
        try:
            self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            raise DuplicateUserError(
                f"user already exists (telegram_id={user.telegram_id})"
            ) from exc
        return self._from_document(payload)

    def update_profile(
        self,
        telegram_id: str,
        first_name: str,
        last_name: str,
        username: str,
        photo_url: str,
    ) -> TelegramUser | None:
        now = datetime.now(timezone.utc)
        result = self._col.find_one_and_update(
            {"telegram_id": telegram_id},
            {
                "$set": {
                    "first_name": first_name,
                    "last_name": last_name,
                    "username": username,
                    "photo_url": photo_url,
                    "updated_at": now,
                }
            },
            return_document=ReturnDocument.AFTER,
        )
        if not result:
            return None
        return self._from_document(result)
