from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from .errors import to_http_exception
from ..schemas.common import PaginatedResponse
from ..schemas.favorites import (
    FavoriteCheckRequest,
    FavoriteCheckResponse,
    FavoriteCreateRequest,
    FavoriteDeleteRequest,
    FavoriteItem,
)
from ...exceptions import LoyaltyServiceError
from ...models.favorite import FavoriteCafe
from ...services.favorites_service import FavoritesService, get_favorites_service


router = APIRouter()


def _to_item(favorite: FavoriteCafe) -> FavoriteItem:
    return FavoriteItem(
        cafe_id=favorite.cafe_id,
        cafe_name=favorite.cafe_name,
        cafe_city=favorite.cafe_city,
        cafe_description=favorite.cafe_description,
        created_at=favorite.created_at,
    )


@router.post("", response_model=FavoriteItem, summary="카페 즐겨찾기 추가")
def add_favorite(
    body: FavoriteCreateRequest,
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteItem:
    try:
        favorite = service.add_favorite(
            telegram_id=body.telegram_id,
            cafe_id=body.cafe_id,
            cafe_name=body.cafe_name,
            cafe_city=body.cafe_city,
            cafe_description=body.cafe_description,
        )
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return _to_item(favorite)


@router.delete("", summary="카페 즐겨찾기 삭제")
def remove_favorite(
    body: FavoriteDeleteRequest,
    service: FavoritesService = Depends(get_favorites_service),
) -> dict[str, str]:
    try:
        deleted = service.remove_favorite(
            telegram_id=body.telegram_id, cafe_id=body.cafe_id
        )
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    if not deleted:
        raise HTTPException(status_code=404, detail="favorite not found")
    return {"message": "favorite_deleted"}


@router.get(
    "",
    response_model=PaginatedResponse[FavoriteItem],
    summary="즐겨찾기 카페 목록",
)
def list_favorites(
    telegram_id: str = Query(..., min_length=1, description="텔레그램 유저 id"),
    page: int = Query(1, ge=1, description="조회할 페이지 (1부터 시작)"),
    page_size: int = Query(20, ge=1, le=100, description="페이지당 아이템 개수 (1~100)"),
    service: FavoritesService = Depends(get_favorites_service),
) -> PaginatedResponse[FavoriteItem]:
    try:
        items, total = service.list_favorites(
            telegram_id=telegram_id, page=page, page_size=page_size
        )
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return PaginatedResponse(
        items=[_to_item(f) for f in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/check",
    response_model=FavoriteCheckResponse,
    summary="즐겨찾기 여부 일괄 조회",
)
def check_favorites(
    body: FavoriteCheckRequest,
    service: FavoritesService = Depends(get_favorites_service),
) -> FavoriteCheckResponse:
    try:
        ids = service.get_favorite_cafe_ids(
            telegram_id=body.telegram_id, cafe_ids=body.cafe_ids
        )
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return FavoriteCheckResponse(favorite_cafe_ids=ids)
