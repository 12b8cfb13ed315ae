from __future__ import annotations

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import FAVORITES_COLLECTION

from .documents.favorite_document import FavoriteCafeDocument
from .interfaces import FavoriteRepositoryInterface
from ..models.favorite import FavoriteCafe


class FavoriteRepository(FavoriteRepositoryInterface):
    """favorites 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database[FAVORITES_COLLECTION]

    def create(self, favorite: FavoriteCafe) -> FavoriteCafe:
        key = {"telegram_id": favorite.telegram_id, "cafe_id": favorite.cafe_id}
        payload = FavoriteCafeDocument.from_domain(favorite).to_mongo_record()
        try:
            self._col.update_one(key, {"$setOnInsert": payload}, upsert=True)
        except DuplicateKeyError:
            # 동시 upsert 경합에서 진 경우. 아래에서 먼저 생긴 도큐먼트를 읽는다.
            pass
        # 이미 있던 즐겨찾기여도 저장된 값을 다시 읽어 돌려준다.
        found = self._col.find_one(key)
        assert found is not None
        return FavoriteCafeDocument.model_validate(found).to_domain()

    def delete(self, telegram_id: str, cafe_id: str) -> bool:
        result = self._col.delete_one({"telegram_id": telegram_id, "cafe_id": cafe_id})
        return result.deleted_count > 0

    def list_by_user(
        self, telegram_id: str, page: int, page_size: int
    ) -> tuple[list[FavoriteCafe], int]:
        if page <= 0:
            page = 1
        if page_size <= 0 or page_size > 100:
            page_size = 20

        total = self._col.count_documents({"telegram_id": telegram_id})
        cursor = self._col.find(
            {"telegram_id": telegram_id},
            sort=[("created_at", -1), ("_id", -1)],
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        items = [FavoriteCafeDocument.model_validate(raw).to_domain() for raw in cursor]
        return items, total

    def list_cafe_ids_for_user(self, telegram_id: str, cafe_ids: list[str]) -> list[str]:
        if not cafe_ids:
            return []

        cursor = self._col.find(
            {"telegram_id": telegram_id, "cafe_id": {"$in": cafe_ids}},
            {"cafe_id": 1},
        )
        return [str(raw["cafe_id"]) for raw in cursor if raw.get("cafe_id") is not None]
