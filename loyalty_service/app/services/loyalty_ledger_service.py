"""로열티 포인트 원장 서비스.

(identity, merchant) 별 포인트를 관리한다.
포인트 변경은 읽기 -> 계산 -> version 조건부 쓰기(CAS) 루프로 수행해 lost update 를 막는다.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends
from pymongo.database import Database

from ..config import DEFAULT_CAS_MAX_ATTEMPTS, LoyaltyConfig, get_settings
from ..exceptions import AccountNotFoundError, BalanceOverflowError, TransientError
from ..models.loyalty import POINTS_MAX, LoyaltyAccount
from ..repositories.guard import get_store_database, store_guard
from ..repositories.interfaces import LoyaltyAccountRepositoryInterface
from ..repositories.loyalty_repository import LoyaltyAccountRepository


logger = logging.getLogger(__name__)


class LoyaltyLedgerService:
    """매장별 포인트 가입/적립/차감/조회 비즈니스 로직."""

    def __init__(
        self,
        repo: LoyaltyAccountRepositoryInterface,
        *,
        max_attempts: int = DEFAULT_CAS_MAX_ATTEMPTS,
        default_timeout: float | None = None,
    ) -> None:
        if max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self._repo = repo
        self._max_attempts = max_attempts
        self._default_timeout = default_timeout

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout

    def enroll(self, identity: str, merchant: str, timeout: float | None = None) -> bool:
        """포인트 계정을 만든다. 이미 있으면 아무것도 하지 않는다 (포인트 유지).

        새로 만들었으면 True, 이미 가입돼 있었으면 False.
        """

        with store_guard(self._timeout(timeout)):
            created = self._repo.create_if_absent(identity, merchant)
        if created:
            logger.info(
                "enrolled loyalty account",
                extra={"identity": identity, "merchant": merchant},
            )
        return created

    def _update(
        self,
        identity: str,
        merchant: str,
        compute: Callable[[int], int],
        timeout: float | None,
    ) -> tuple[int, int, int]:
        """compute(현재 잔액) 결과를 CAS 로 쓴다. (이전 잔액, 새 잔액, 시도 횟수) 를 반환한다."""

        with store_guard(self._timeout(timeout)):
            for attempt in range(1, self._max_attempts + 1):
                account = self._repo.find(identity, merchant)
                if account is None:
                    raise AccountNotFoundError(identity, merchant)

                new_points = compute(account.points)
                if self._repo.compare_and_set_points(
                    identity,
                    merchant,
                    expected_version=account.version,
                    points=new_points,
                ):
                    return account.points, new_points, attempt

                logger.debug(
                    "loyalty write conflict (identity=%s, merchant=%s, attempt=%d)",
                    identity,
                    merchant,
                    attempt,
                )

        logger.warning(
            "loyalty update gave up after %d conflicting attempts",
            self._max_attempts,
            extra={"identity": identity, "merchant": merchant},
        )
        raise TransientError(
            f"too much contention on loyalty account (identity={identity}, merchant={merchant})"
        )

    def apply_delta(
        self,
        identity: str,
        merchant: str,
        delta: int,
        timeout: float | None = None,
    ) -> int:
        """포인트에 delta 를 반영하고 새 잔액을 반환한다.

        - 잔액은 max(0, 현재 + delta) 로 0 아래로 내려가지 않는다.
        - 결과가 POINTS_MAX 를 넘으면 아무것도 쓰지 않고 BalanceOverflowError.
        - 가입하지 않은 쌍이면 AccountNotFoundError (자동 가입하지 않는다).
        - 경합으로 max_attempts 번 모두 지면 TransientError.
        """

        def _add(points: int) -> int:
            new_points = max(0, points + delta)
            if new_points > POINTS_MAX:
                raise BalanceOverflowError(identity, merchant)
            return new_points

        _, new_points, attempt = self._update(identity, merchant, _add, timeout)
        logger.info(
            "applied loyalty delta",
            extra={
                "identity": identity,
                "merchant": merchant,
                "delta": delta,
                "points": new_points,
                "attempt": attempt,
            },
        )
        return new_points

    def redeem(
        self,
        identity: str,
        merchant: str,
        max_points: int,
        timeout: float | None = None,
    ) -> tuple[int, int]:
        """잔액에서 최대 max_points 를 차감한다. (실제 차감한 포인트, 새 잔액).

        차감량은 CAS 로 쓴 바로 그 잔액 기준이라 동시 차감이 있어도 할인액과 어긋나지 않는다.
        """

        if max_points < 0:
            raise ValueError("max_points must not be negative")

        old_points, new_points, attempt = self._update(
            identity,
            merchant,
            lambda points: points - min(points, max_points),
            timeout,
        )
        used = old_points - new_points
        logger.info(
            "redeemed loyalty points",
            extra={
                "identity": identity,
                "merchant": merchant,
                "delta": -used,
                "points": new_points,
                "attempt": attempt,
            },
        )
        return used, new_points

    def get_balance(self, identity: str, merchant: str, timeout: float | None = None) -> int:
        """잔액 조회. 계정이 없으면 0 (가입 여부를 묻지 않는다)."""

        account = self.get_account(identity, merchant, timeout=timeout)
        if account is None:
            return 0
        return account.points

    def get_account(
        self, identity: str, merchant: str, timeout: float | None = None
    ) -> LoyaltyAccount | None:
        with store_guard(self._timeout(timeout)):
            return self._repo.find(identity, merchant)

    def list_accounts(
        self, identity: str, timeout: float | None = None
    ) -> list[LoyaltyAccount]:
        """한 고객의 전체 매장 포인트 목록."""

        with store_guard(self._timeout(timeout)):
            return self._repo.list_by_identity(identity)


def get_loyalty_repository(
    db: Database = Depends(get_store_database),
) -> LoyaltyAccountRepositoryInterface:
    """FastAPI DI용 LoyaltyAccountRepository 팩토리."""

    return LoyaltyAccountRepository(db)


def get_loyalty_ledger_service(
    repo: LoyaltyAccountRepositoryInterface = Depends(get_loyalty_repository),
    settings: LoyaltyConfig = Depends(get_settings),
) -> LoyaltyLedgerService:
    """FastAPI DI용 LoyaltyLedgerService 팩토리."""

    return LoyaltyLedgerService(
        repo,
        max_attempts=settings.cas_max_attempts,
        default_timeout=settings.store_timeout_seconds,
    )
