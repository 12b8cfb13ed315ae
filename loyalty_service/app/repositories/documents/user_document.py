from __future__ import annotations

from common.mongo.types import BaseDocument

from ...models.user import TelegramUser


class TelegramUserDocument(BaseDocument):
    """MongoDB users 컬렉션 도큐먼트 모델."""

    telegram_id: str
    first_name: str
    last_name: str = ""
    username: str = ""
    photo_url: str = ""

    @classmethod
    def from_domain(cls, user: TelegramUser) -> "TelegramUserDocument":
        return cls.model_validate(user.model_dump())

    def to_domain(self) -> TelegramUser:
        return TelegramUser(
            telegram_id=self.telegram_id,
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            photo_url=self.photo_url,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
