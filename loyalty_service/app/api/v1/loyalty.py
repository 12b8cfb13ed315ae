"""로열티 포인트 라우터.

매장 단말(POS)이 호출한다. 에러 code 로 무효 코드 / 미가입 / 재시도를 구분한다.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from .errors import to_http_exception
from ..schemas.loyalty import (
    AdjustPointsRequest,
    BalanceResponse,
    EarnResponse,
    EnrollRequest,
    EnrollResponse,
    ListLoyaltyAccountsResponse,
    LoyaltyAccountItem,
    LoyaltySettingsResponse,
    OrderRequest,
    RedeemResponse,
    UpdateLoyaltySettingsRequest,
)
from ...exceptions import LoyaltyServiceError
from ...models.merchant_settings import MerchantLoyaltySettings
from ...services.loyalty_ledger_service import (
    LoyaltyLedgerService,
    get_loyalty_ledger_service,
)
from ...services.merchant_settings_service import (
    MerchantSettingsService,
    get_merchant_settings_service,
)
from ...services.point_of_sale_service import (
    PointOfSaleService,
    get_point_of_sale_service,
)


router = APIRouter(prefix="/loyalty", tags=["loyalty"])

LedgerDep = Annotated[LoyaltyLedgerService, Depends(get_loyalty_ledger_service)]
PosDep = Annotated[PointOfSaleService, Depends(get_point_of_sale_service)]
SettingsDep = Annotated[
    MerchantSettingsService, Depends(get_merchant_settings_service)
]


@router.get("/accounts/{identity}", summary="고객의 전체 매장 포인트")
def list_accounts(identity: str, ledger: LedgerDep) -> ListLoyaltyAccountsResponse:
    try:
        accounts = ledger.list_accounts(identity)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return ListLoyaltyAccountsResponse(
        identity=identity,
        items=[
            LoyaltyAccountItem(
                merchant=a.merchant, points=a.points, last_updated=a.updated_at
            )
            for a in accounts
        ],
    )


@router.post("/{merchant}/accounts", summary="매장 포인트 가입 (idempotent)")
def enroll_customer(
    merchant: str, body: EnrollRequest, ledger: LedgerDep
) -> EnrollResponse:
    try:
        created = ledger.enroll(body.identity, merchant)
        points = ledger.get_balance(body.identity, merchant)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return EnrollResponse(
        identity=body.identity, merchant=merchant, points=points, created=created
    )


@router.get("/{merchant}/accounts/{identity}", summary="포인트 조회 (미가입이면 0)")
def query_points(merchant: str, identity: str, ledger: LedgerDep) -> BalanceResponse:
    try:
        points = ledger.get_balance(identity, merchant)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return BalanceResponse(identity=identity, merchant=merchant, points=points)


@router.post("/{merchant}/accounts/{identity}/adjust", summary="포인트 증감")
def adjust_points(
    merchant: str, identity: str, body: AdjustPointsRequest, ledger: LedgerDep
) -> BalanceResponse:
    try:
        points = ledger.apply_delta(identity, merchant, body.delta)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return BalanceResponse(identity=identity, merchant=merchant, points=points)


@router.post("/{merchant}/codes/{code}/enroll", summary="스캔한 코드로 가입")
def enroll_by_code(merchant: str, code: str, pos: PosDep) -> EnrollResponse:
    try:
        identity, created = pos.enroll_by_code(code, merchant)
        _, points = pos.balance_by_code(code, merchant)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return EnrollResponse(
        identity=identity, merchant=merchant, points=points, created=created
    )


@router.get("/{merchant}/codes/{code}", summary="스캔한 코드로 포인트 조회")
def balance_by_code(merchant: str, code: str, pos: PosDep) -> BalanceResponse:
    try:
        identity, points = pos.balance_by_code(code, merchant)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return BalanceResponse(identity=identity, merchant=merchant, points=points)


@router.post("/{merchant}/codes/{code}/adjust", summary="스캔한 코드로 포인트 증감")
def adjust_points_by_code(
    merchant: str, code: str, body: AdjustPointsRequest, pos: PosDep
) -> BalanceResponse:
    try:
        identity, points = pos.adjust_points_by_code(code, merchant, body.delta)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return BalanceResponse(identity=identity, merchant=merchant, points=points)


@router.post("/{merchant}/codes/{code}/earn", summary="주문 금액으로 포인트 적립")
def earn_by_code(
    merchant: str, code: str, body: OrderRequest, pos: PosDep
) -> EarnResponse:
    try:
        result = pos.earn_by_code(code, merchant, body.order_amount)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return EarnResponse(
        identity=result.identity,
        merchant=merchant,
        points_earned=result.points_earned,
        points=result.balance,
    )


@router.post("/{merchant}/codes/{code}/redeem", summary="포인트로 주문 금액 할인")
def redeem_by_code(
    merchant: str, code: str, body: OrderRequest, pos: PosDep
) -> RedeemResponse:
    try:
        result = pos.redeem_by_code(code, merchant, body.order_amount)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return RedeemResponse(
        identity=result.identity,
        merchant=merchant,
        points_used=result.redemption.points_used,
        discount=result.redemption.discount,
        final_amount=result.redemption.final_amount,
        points=result.balance,
    )


def _settings_response(settings: MerchantLoyaltySettings) -> LoyaltySettingsResponse:
    return LoyaltySettingsResponse.model_validate(
        settings.model_dump(exclude={"id", "created_at", "updated_at"})
    )


@router.get("/{merchant}/settings", summary="매장 적립 규칙 (없으면 기본값 생성)")
def get_loyalty_settings(
    merchant: str, service: SettingsDep
) -> LoyaltySettingsResponse:
    try:
        settings = service.get_settings(merchant)
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return _settings_response(settings)


@router.patch("/{merchant}/settings", summary="매장 적립 규칙 변경")
def update_loyalty_settings(
    merchant: str, body: UpdateLoyaltySettingsRequest, service: SettingsDep
) -> LoyaltySettingsResponse:
    try:
        settings = service.update_settings(
            merchant, body.model_dump(exclude_none=True)
        )
    except LoyaltyServiceError as exc:
        raise to_http_exception(exc) from exc
    return _settings_response(settings)
