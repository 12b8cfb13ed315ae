from __future__ import annotations

from common.mongo.types import BaseDocument, from_object_id

from ...models.favorite import FavoriteCafe


class FavoriteCafeDocument(BaseDocument):
    """MongoDB favorites 컬렉션 도큐먼트 모델."""

    telegram_id: str
    cafe_id: str
    cafe_name: str = ""
    cafe_city: str = ""
    cafe_description: str = ""

    @classmethod
    def from_domain(cls, favorite: FavoriteCafe) -> "FavoriteCafeDocument":
        data = favorite.model_dump(exclude={"id"})
        data["updated_at"] = favorite.created_at
        return cls.model_validate(data)

    def to_domain(self) -> FavoriteCafe:
        return FavoriteCafe(
            id=from_object_id(self.id),
            telegram_id=self.telegram_id,
            cafe_id=self.cafe_id,
            cafe_name=self.cafe_name,
            cafe_city=self.cafe_city,
            cafe_description=self.cafe_description,
            created_at=self.created_at,
        )
