from __future__ import annotations

from datetime import datetime, timezone

from fastapi import Depends
from pymongo.database import Database

from ..models.favorite import FavoriteCafe
from ..repositories.favorite_repository import FavoriteRepository
from ..repositories.guard import get_store_database, store_guard
from ..repositories.interfaces import FavoriteRepositoryInterface


class FavoritesService:
    """즐겨찾기 카페 관리 비즈니스 로직."""

    def __init__(self, repo: FavoriteRepositoryInterface) -> None:
        self._repo = repo

    def add_favorite(
        self,
        telegram_id: str,
        cafe_id: str,
        cafe_name: str = "",
        cafe_city: str = "",
        cafe_description: str = "",
    ) -> FavoriteCafe:
        """즐겨찾기를 추가한다. 이미 있으면 에러 없이 기존 것을 반환한다."""

        favorite = FavoriteCafe(
            telegram_id=telegram_id,
            cafe_id=cafe_id,
            cafe_name=cafe_name,
            cafe_city=cafe_city,
            cafe_description=cafe_description,
            created_at=datetime.now(timezone.utc),
        )
        with store_guard():
            return self._repo.create(favorite)

    def remove_favorite(self, telegram_id: str, cafe_id: str) -> bool:
        with store_guard():
            return self._repo.delete(telegram_id=telegram_id, cafe_id=cafe_id)

    def list_favorites(
        self, telegram_id: str, page: int, page_size: int
    ) -> tuple[list[FavoriteCafe], int]:
        with store_guard():
            return self._repo.list_by_user(
                telegram_id=telegram_id, page=page, page_size=page_size
            )

    def get_favorite_cafe_ids(self, telegram_id: str, cafe_ids: list[str]) -> list[str]:
        """주어진 cafe_ids 중 즐겨찾기된 것만 반환한다."""

        with store_guard():
            return self._repo.list_cafe_ids_for_user(
                telegram_id=telegram_id, cafe_ids=cafe_ids
            )


def get_favorite_repository(
    db: Database = Depends(get_store_database),
) -> FavoriteRepositoryInterface:
    """FastAPI DI용 FavoriteRepository 팩토리."""

    return FavoriteRepository(db)


def get_favorites_service(
    repo: FavoriteRepositoryInterface = Depends(get_favorite_repository),
) -> FavoritesService:
    """FastAPI DI용 FavoritesService 팩토리."""

    return FavoritesService(repo)
