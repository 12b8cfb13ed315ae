from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from fastapi import Depends

from ..exceptions import AccountNotFoundError, CodeNotFoundError
from .code_registry_service import CodeRegistryService, get_code_registry_service
from .loyalty_ledger_service import LoyaltyLedgerService, get_loyalty_ledger_service
from .loyalty_rules import (
    Redemption,
    calculate_points_to_earn,
    max_redeemable_points,
    redemption_for,
)
from .merchant_settings_service import (
    MerchantSettingsService,
    get_merchant_settings_service,
)


@dataclass(frozen=True, slots=True)
class EarnResult:
    identity: str
    points_earned: int
    balance: int


@dataclass(frozen=True, slots=True)
class RedeemResult:
    identity: str
    redemption: Redemption
    balance: int


class PointOfSaleService:
    """매장 단말에서 스캔한 코드로 포인트를 다루는 흐름.

    - 원장을 건드리기 전에 항상 저장소에서 코드를 다시 확인한다 (은퇴한 코드로 적립 방지).
    - 코드 레지스트리와 원장은 서로 모르고, identity 값으로만 이어진다.
    """

    def __init__(
        self,
        registry: CodeRegistryService,
        ledger: LoyaltyLedgerService,
        settings: MerchantSettingsService,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._settings = settings

    def _resolve(self, code: str, timeout: float | None) -> str:
        identity = self._registry.resolve_identity(code, timeout=timeout)
        if identity is None:
            raise CodeNotFoundError(code)
        return identity

    def adjust_points_by_code(
        self, code: str, merchant: str, delta: int, timeout: float | None = None
    ) -> tuple[str, int]:
        """(identity, 새 잔액). 코드가 무효면 CodeNotFoundError, 미가입이면 AccountNotFoundError."""

        identity = self._resolve(code, timeout)
        return identity, self._ledger.apply_delta(identity, merchant, delta, timeout=timeout)

    def enroll_by_code(
        self, code: str, merchant: str, timeout: float | None = None
    ) -> tuple[str, bool]:
        identity = self._resolve(code, timeout)
        return identity, self._ledger.enroll(identity, merchant, timeout=timeout)

    def balance_by_code(
        self, code: str, merchant: str, timeout: float | None = None
    ) -> tuple[str, int]:
        identity = self._resolve(code, timeout)
        return identity, self._ledger.get_balance(identity, merchant, timeout=timeout)

    def earn_by_code(
        self,
        code: str,
        merchant: str,
        order_amount: Decimal,
        at: datetime | None = None,
        timeout: float | None = None,
    ) -> EarnResult:
        """주문 금액을 매장 규칙으로 포인트로 바꿔 적립한다.

        적립할 포인트가 0 이면 쓰지 않지만 가입 여부는 똑같이 확인한다.
        """

        identity = self._resolve(code, timeout)
        rules = self._settings.get_settings(merchant, timeout=timeout)
        points = calculate_points_to_earn(rules, order_amount, at)

        if points == 0:
            account = self._ledger.get_account(identity, merchant, timeout=timeout)
            if account is None:
                raise AccountNotFoundError(identity, merchant)
            return EarnResult(identity=identity, points_earned=0, balance=account.points)

        balance = self._ledger.apply_delta(identity, merchant, points, timeout=timeout)
        return EarnResult(identity=identity, points_earned=points, balance=balance)

    def redeem_by_code(
        self,
        code: str,
        merchant: str,
        order_amount: Decimal,
        timeout: float | None = None,
    ) -> RedeemResult:
        """보유 포인트로 주문 금액을 할인한다. 할인액은 실제로 차감된 포인트 기준."""

        identity = self._resolve(code, timeout)
        used, balance = self._ledger.redeem(
            identity, merchant, max_redeemable_points(order_amount), timeout=timeout
        )
        return RedeemResult(
            identity=identity,
            redemption=redemption_for(order_amount, used),
            balance=balance,
        )


def get_point_of_sale_service(
    registry: CodeRegistryService = Depends(get_code_registry_service),
    ledger: LoyaltyLedgerService = Depends(get_loyalty_ledger_service),
    settings: MerchantSettingsService = Depends(get_merchant_settings_service),
) -> PointOfSaleService:
    """FastAPI DI용 PointOfSaleService 팩토리."""

    return PointOfSaleService(registry, ledger, settings)
