from __future__ import annotations

from typing import Protocol

from ..models.favorite import FavoriteCafe
from ..models.loyalty import LoyaltyAccount
from ..models.merchant_settings import MerchantLoyaltySettings
from ..models.user import TelegramUser
from ..models.user_code import UserCode


class UserCodeRepositoryInterface(Protocol):
    """UserCodeRepository 가 따라야 할 최소한의 계약.

    - 활성 레코드는 code 기준, identity 기준으로 각각 하나뿐이어야 하며
      이는 저장소 쓰기 시점에 강제된다.
    """

    def find_active_by_identity(
        self, identity: str
    ) -> UserCode | None:  # pragma: no cover - Protocol
        ...

    def find_active_by_code(
        self, code: str
    ) -> UserCode | None:  # pragma: no cover - Protocol
        ...

    def insert_active(
        self, identity: str, code: str
    ) -> UserCode:  # pragma: no cover - Protocol
        """활성 레코드를 원자적으로 생성한다.

        - 같은 code 의 활성 레코드가 있으면 CodeCollisionError
        - 같은 identity 의 활성 레코드가 있으면 ActiveCodeExistsError
        """
        ...

    def retire(self, code: str) -> bool:  # pragma: no cover - Protocol
        """활성 레코드를 비활성으로 돌린다. 바뀐 레코드가 없으면 False."""
        ...

    def count_active(self) -> int:  # pragma: no cover - Protocol
        ...


class LoyaltyAccountRepositoryInterface(Protocol):
    """LoyaltyAccountRepository 가 따라야 할 최소한의 계약.

    - (identity, merchant) 조합으로 유니크하게 계정을 관리한다.
    - 포인트 변경은 version 기반 compare-and-set 으로만 한다.
    """

    def find(
        self, identity: str, merchant: str
    ) -> LoyaltyAccount | None:  # pragma: no cover - Protocol
        ...

    def create_if_absent(
        self, identity: str, merchant: str
    ) -> bool:  # pragma: no cover - Protocol
        """없으면 points=0 계정을 만들고 True, 이미 있으면 False."""
        ...

    def compare_and_set_points(
        self,
        identity: str,
        merchant: str,
        expected_version: int,
        points: int,
    ) -> bool:  # pragma: no cover - Protocol
        """version 이 expected_version 그대로일 때만 points 를 쓰고 version 을 올린다."""
        ...

    def list_by_identity(
        self, identity: str
    ) -> list[LoyaltyAccount]:  # pragma: no cover - Protocol
        ...


class MerchantSettingsRepositoryInterface(Protocol):
    """매장별 적립 규칙. merchant 당 하나."""

    def find(
        self, merchant: str
    ) -> MerchantLoyaltySettings | None:  # pragma: no cover - Protocol
        ...

    def create_if_absent(
        self, settings: MerchantLoyaltySettings
    ) -> MerchantLoyaltySettings:  # pragma: no cover - Protocol
        """없으면 settings 로 만들고, 이미 있으면 저장된 값을 그대로 돌려준다."""
        ...

    def save(
        self, settings: MerchantLoyaltySettings
    ) -> MerchantLoyaltySettings:  # pragma: no cover - Protocol
        ...


class UserRepositoryInterface(Protocol):
    def find_by_telegram_id(
        self, telegram_id: str
    ) -> TelegramUser | None:  # pragma: no cover - Protocol
        ...

    def insert(self, user: TelegramUser) -> TelegramUser:  # pragma: no cover - Protocol
        """이미 같은 telegram_id 가 있으면 DuplicateUserError."""
        ...

    def update_profile(
        self,
        telegram_id: str,
        first_name: str,
        last_name: str,
        username: str,
        photo_url: str,
    ) -> TelegramUser | None:  # pragma: no cover - Protocol
        ...


class FavoriteRepositoryInterface(Protocol):
    """FavoriteRepository 가 따라야 할 최소한의 계약.

    - telegram_id + cafe_id 조합으로 유니크하게 즐겨찾기를 관리한다.
    """

    def create(
        self, favorite: FavoriteCafe
    ) -> FavoriteCafe:  # pragma: no cover - Protocol
        ...

    def delete(
        self, telegram_id: str, cafe_id: str
    ) -> bool:  # pragma: no cover - Protocol
        ...

    def list_by_user(
        self, telegram_id: str, page: int, page_size: int
    ) -> tuple[list[FavoriteCafe], int]:  # pragma: no cover - Protocol
        ...

    def list_cafe_ids_for_user(
        self, telegram_id: str, cafe_ids: list[str]
    ) -> list[str]:  # pragma: no cover - Protocol
        ...
