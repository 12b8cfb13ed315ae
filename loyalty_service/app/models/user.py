from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class TelegramUser(BaseModel):
    """텔레그램 미니앱 유저 도메인 모델.

    - telegram_id 가 외부 식별자(identity)이며 users 컬렉션에서 유니크하다.
    """

    telegram_id: str
    first_name: str
    last_name: str = ""
    username: str = ""
    photo_url: str = ""
    created_at: datetime
    updated_at: datetime


class TelegramUserInput(BaseModel):
    """initData 에서 꺼낸 유저 정보. 처음 보는 유저면 생성, 아니면 프로필 갱신."""

    telegram_id: str
    first_name: str
    last_name: str = ""
    username: str = ""
    photo_url: str = ""
