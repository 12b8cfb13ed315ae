from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from .errors import to_http_exception
from ..schemas.users import UpsertUserRequest, UserProfileResponse
from ...exceptions import LoyaltyServiceError
from ...models.user import TelegramUser, TelegramUserInput
from ...services.users_service import UsersService, get_users_service


router = APIRouter()


def _to_response(user: TelegramUser, created: bool = False) -> UserProfileResponse:
    return UserProfileResponse(**user.model_dump(), created=created)


@router.put("", response_model=UserProfileResponse, summary="텔레그램 유저 생성/갱신")
def upsert_user(
    body: UpsertUserRequest,
    service: UsersService = Depends(get_users_service),
) -> UserProfileResponse:
    try:
        user, created = service.upsert_user(TelegramUserInput(**body.model_dump()))
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return _to_response(user, created)


@router.get(
    "/{telegram_id}", response_model=UserProfileResponse, summary="텔레그램 유저 조회"
)
def get_user(
    telegram_id: str,
    service: UsersService = Depends(get_users_service),
) -> UserProfileResponse:
    try:
        user = service.get_user(telegram_id)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    if user is None:
        raise HTTPException(status_code=404, detail="user not found")
    return _to_response(user)
