from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import Depends
from pymongo.database import Database

from ..exceptions import DuplicateUserError
from ..models.user import TelegramUser, TelegramUserInput
from ..repositories.guard import get_store_database, store_guard
from ..repositories.interfaces import UserRepositoryInterface
from ..repositories.user_repository import UserRepository


logger = logging.getLogger(__name__)


class UsersService:
    """텔레그램 유저 upsert 및 조회 비즈니스 로직.

    - Repository(UserRepositoryInterface)에만 의존하고, Mongo 세부 구현은 알지 않는다.
    """

    def __init__(self, user_repo: UserRepositoryInterface) -> None:
        self._user_repo = user_repo

    def upsert_user(self, input_model: TelegramUserInput) -> tuple[TelegramUser, bool]:
        """처음 보는 유저면 생성, 아니면 프로필을 갱신한다. (유저, 신규 여부) 반환."""

        with store_guard():
            existing = self._user_repo.find_by_telegram_id(input_model.telegram_id)
            if existing is None:
                now = datetime.now(timezone.utc)
                user = TelegramUser(
                    **input_model.model_dump(),
                    created_at=now,
                    updated_at=now,
                )
                try:
                    created = self._user_repo.insert(user)
                except DuplicateUserError:
                    # 같은 유저의 첫 요청 두 개가 동시에 들어온 경우. 갱신 경로로 넘어간다.
                    logger.info(
                        "user created concurrently, updating instead",
                        extra={"identity": input_model.telegram_id},
                    )
                else:
                    logger.info("created user", extra={"identity": created.telegram_id})
                    return created, True

            updated = self._user_repo.update_profile(
                telegram_id=input_model.telegram_id,
                first_name=input_model.first_name,
                last_name=input_model.last_name,
                username=input_model.username,
                photo_url=input_model.photo_url,
            )
        if updated is None:
            raise RuntimeError(
                f"user not found for update (telegram_id={input_model.telegram_id})"
            )
        return updated, False

    def get_user(self, telegram_id: str) -> TelegramUser | None:
        with store_guard():
            return self._user_repo.find_by_telegram_id(telegram_id)


def get_user_repository(
    db: Database = Depends(get_store_database),
) -> UserRepositoryInterface:
    """FastAPI DI용 UserRepository 팩토리."""

    return UserRepository(db)


def get_users_service(
    user_repo: UserRepositoryInterface = Depends(get_user_repository),
) -> UsersService:
    """FastAPI DI용 UsersService 팩토리."""

    return UsersService(user_repo)
