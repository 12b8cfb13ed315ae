from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class FavoriteCreateRequest(BaseModel):
    telegram_id: str = Field(min_length=1)
    cafe_id: str = Field(min_length=1)
    cafe_name: str = ""
    cafe_city: str = ""
    cafe_description: str = ""


class FavoriteDeleteRequest(BaseModel):
    telegram_id: str = Field(min_length=1)
    cafe_id: str = Field(min_length=1)


class FavoriteItem(BaseModel):
    cafe_id: str
    cafe_name: str
    cafe_city: str
    cafe_description: str
    created_at: UtcDateTime


class FavoriteCheckRequest(BaseModel):
    telegram_id: str = Field(min_length=1)
    cafe_ids: list[str] = Field(default_factory=list)


class FavoriteCheckResponse(BaseModel):
    favorite_cafe_ids: list[str]
