from __future__ import annotations

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..schemas.common import ErrorDetail
from ...exceptions import (
    AccountNotFoundError,
    BalanceOverflowError,
    CodeNotFoundError,
    LoyaltyServiceError,
    RegistryExhaustedError,
    TransientError,
)


def _error(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorDetail(code=code, message=message).model_dump(),
        headers=headers,
    )


def to_http_exception(exc: LoyaltyServiceError) -> HTTPException:
    """서비스 예외를 단말이 구분할 수 있는 HTTP 에러로 바꾼다.

    - 무효/만료 코드(invalid_code), 미가입(not_enrolled), 재시도(try_again) 를 서로 다른 code 로 준다.
    """

    if isinstance(exc, CodeNotFoundError):
        return _error(
            status.HTTP_404_NOT_FOUND, "invalid_code", "유효하지 않거나 만료된 코드입니다."
        )
    if isinstance(exc, AccountNotFoundError):
        return _error(
            status.HTTP_409_CONFLICT, "not_enrolled", "이 매장 포인트에 가입하지 않은 고객입니다."
        )
    if isinstance(exc, TransientError):
        return _error(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "try_again",
            "잠시 후 다시 시도해 주세요.",
            headers={"Retry-After": "1"},
        )
    if isinstance(exc, BalanceOverflowError):
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "balance_overflow",
            "포인트 잔액이 허용 범위를 넘습니다.",
        )
    if isinstance(exc, RegistryExhaustedError):
        return _error(
            status.HTTP_503_SERVICE_UNAVAILABLE, "registry_exhausted", "발급 가능한 코드가 없습니다."
        )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", str(exc))


async def loyalty_error_handler(
    request: Request, exc: LoyaltyServiceError
) -> JSONResponse:
    """라우트 밖(DI 팩토리 등)에서 올라온 서비스 예외도 같은 규칙으로 응답한다."""

    http_exc = to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )
