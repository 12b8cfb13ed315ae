from __future__ import annotations

from pydantic import BaseModel, Field

from common.types.datetime import UtcDateTime


class UpsertUserRequest(BaseModel):
    telegram_id: str = Field(min_length=1)
    first_name: str
    last_name: str = ""
    username: str = ""
    photo_url: str = ""


class UserProfileResponse(BaseModel):
    telegram_id: str
    first_name: str
    last_name: str
    username: str
    photo_url: str
    created: bool = False
    created_at: UtcDateTime
    updated_at: UtcDateTime
