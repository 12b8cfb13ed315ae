from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class FavoriteCafe(BaseModel):
    """유저가 즐겨찾기한 카페. 추가 시점의 카페 정보를 스냅샷으로 보관한다."""

    id: str | None = None
    telegram_id: str
    cafe_id: str
    cafe_name: str = ""
    cafe_city: str = ""
    cafe_description: str = ""
    created_at: datetime
