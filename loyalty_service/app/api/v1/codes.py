"""유저 코드 발급/조회 라우터."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from .errors import to_http_exception
from ..schemas.codes import IdentityRequest, RetireCodeResponse, UserCodeResponse
from ...exceptions import CodeNotFoundError, LoyaltyServiceError
from ...services.code_registry_service import (
    CodeRegistryService,
    get_code_registry_service,
)


router = APIRouter()

RegistryDep = Annotated[CodeRegistryService, Depends(get_code_registry_service)]


@router.post("", summary="유저 코드 발급 (이미 있으면 기존 코드)")
def issue_or_get_code(body: IdentityRequest, registry: RegistryDep) -> UserCodeResponse:
    try:
        code = registry.issue_code(body.identity)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return UserCodeResponse(identity=body.identity, code=code)


@router.get("/lookup", summary="identity 의 활성 코드 조회")
def lookup_code(
    registry: RegistryDep,
    identity: str = Query(..., min_length=1, description="외부 유저 식별자"),
) -> UserCodeResponse:
    try:
        code = registry.lookup_code(identity)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    if code is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "code_not_found", "message": "발급된 코드가 없습니다."},
        )
    return UserCodeResponse(identity=identity, code=code)


@router.post("/reissue", summary="코드 재발급 (기존 코드는 은퇴)")
def reissue_code(body: IdentityRequest, registry: RegistryDep) -> UserCodeResponse:
    try:
        code = registry.reissue_code(body.identity)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return UserCodeResponse(identity=body.identity, code=code)


@router.get("/{code}", summary="코드로 identity 조회")
def resolve_code(code: str, registry: RegistryDep) -> UserCodeResponse:
    try:
        identity = registry.resolve_identity(code)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    if identity is None:
        raise to_http_exception(CodeNotFoundError(code))
    return UserCodeResponse(identity=identity, code=code)


@router.delete("/{code}", summary="코드 은퇴")
def retire_code(code: str, registry: RegistryDep) -> RetireCodeResponse:
    try:
        retired = registry.retire_code(code)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    if not retired:
        raise to_http_exception(CodeNotFoundError(code))
    return RetireCodeResponse(code=code, retired=True)
