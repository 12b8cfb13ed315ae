from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from datetime import datetime, timezone

import pytest

from loyalty_service.app.exceptions import (
    ActiveCodeExistsError,
    CodeCollisionError,
    DuplicateUserError,
)
from loyalty_service.app.models.favorite import FavoriteCafe
from loyalty_service.app.models.loyalty import LoyaltyAccount
from loyalty_service.app.models.merchant_settings import MerchantLoyaltySettings
from loyalty_service.app.models.user import TelegramUser
from loyalty_service.app.models.user_code import UserCode
from loyalty_service.app.services.code_registry_service import CodeRegistryService
from loyalty_service.app.services.loyalty_ledger_service import LoyaltyLedgerService
from loyalty_service.app.services.merchant_settings_service import MerchantSettingsService


def _now() -> datetime:
    return datetime.now(timezone.utc)


class FakeUserCodeRepository:
    """부분 유니크 인덱스(active=true)를 흉내 내는 인메모리 user_codes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.records: list[UserCode] = []
        # insert 직전에 끼어드는 "다른 프로세스" 흉내
        self.before_insert: Callable[[str, str], None] | None = None
        # count_active 에 더해지는 값. 코드 공간이 찼을 때를 흉내 낸다.
        self.extra_active = 0
        self.insert_calls: list[tuple[str, str]] = []

    def find_active_by_identity(self, identity: str) -> UserCode | None:
        with self._lock:
            for record in self.records:
                if record.active and record.identity == identity:
                    return record.model_copy()
        return None

    def find_active_by_code(self, code: str) -> UserCode | None:
        with self._lock:
            for record in self.records:
                if record.active and record.code == code:
                    return record.model_copy()
        return None

    def insert_active(self, identity: str, code: str) -> UserCode:
        hook = self.before_insert
        if hook is not None:
            self.before_insert = None
            hook(identity, code)

        with self._lock:
            self.insert_calls.append((identity, code))
            for record in self.records:
                if record.active and record.code == code:
                    raise CodeCollisionError(code)
            for record in self.records:
                if record.active and record.identity == identity:
                    raise ActiveCodeExistsError(identity)
            now = _now()
            record = UserCode(
                id=f"code-{len(self.records) + 1}",
                identity=identity,
                code=code,
                active=True,
                created_at=now,
                updated_at=now,
            )
            self.records.append(record)
            return record.model_copy()

    def force_insert(self, identity: str, code: str) -> None:
        """유니크 검사를 거쳐 다른 프로세스가 넣은 레코드를 추가한다."""
        hook, self.before_insert = self.before_insert, None
        try:
            self.insert_active(identity, code)
        finally:
            self.before_insert = hook

    def retire(self, code: str) -> bool:
        with self._lock:
            for index, record in enumerate(self.records):
                if record.active and record.code == code:
                    now = _now()
                    self.records[index] = record.model_copy(
                        update={"active": False, "retired_at": now, "updated_at": now}
                    )
                    return True
        return False

    def count_active(self) -> int:
        with self._lock:
            return self.extra_active + sum(1 for r in self.records if r.active)


class FakeLoyaltyAccountRepository:
    """version 기반 CAS 를 흉내 내는 thread-safe 인메모리 loyalty_accounts."""

    def __init__(self, read_delay: float = 0.0) -> None:
        self._lock = threading.Lock()
        self.accounts: dict[tuple[str, str], LoyaltyAccount] = {}
        self.read_delay = read_delay
        # 다음 CAS 들 직전에 다른 writer 가 먼저 반영할 delta 목록
        self.interfering_deltas: list[int] = []
        self.cas_calls = 0
        self.cas_failures = 0

    def seed(self, identity: str, merchant: str, points: int) -> None:
        now = _now()
        with self._lock:
            self.accounts[(identity, merchant)] = LoyaltyAccount(
                identity=identity,
                merchant=merchant,
                points=points,
                version=0,
                created_at=now,
                updated_at=now,
            )

    def find(self, identity: str, merchant: str) -> LoyaltyAccount | None:
        with self._lock:
            account = self.accounts.get((identity, merchant))
            snapshot = account.model_copy() if account is not None else None
        if self.read_delay:
            # 읽기와 쓰기 사이에 다른 스레드가 끼어들 여지를 만든다.
            time.sleep(self.read_delay)
        return snapshot

    def create_if_absent(self, identity: str, merchant: str) -> bool:
        with self._lock:
            if (identity, merchant) in self.accounts:
                return False
            now = _now()
            self.accounts[(identity, merchant)] = LoyaltyAccount(
                identity=identity,
                merchant=merchant,
                points=0,
                version=0,
                created_at=now,
                updated_at=now,
            )
            return True

    def compare_and_set_points(
        self,
        identity: str,
        merchant: str,
        expected_version: int,
        points: int,
    ) -> bool:
        with self._lock:
            self.cas_calls += 1
            current = self.accounts.get((identity, merchant))
            if current is None:
                self.cas_failures += 1
                return False

            if self.interfering_deltas:
                delta = self.interfering_deltas.pop(0)
                current = current.model_copy(
                    update={
                        "points": max(0, current.points + delta),
                        "version": current.version + 1,
                    }
                )
                self.accounts[(identity, merchant)] = current

            if current.version != expected_version:
                self.cas_failures += 1
                return False

            self.accounts[(identity, merchant)] = current.model_copy(
                update={
                    "points": points,
                    "version": expected_version + 1,
                    "updated_at": _now(),
                }
            )
            return True

    def list_by_identity(self, identity: str) -> list[LoyaltyAccount]:
        with self._lock:
            return sorted(
                (a.model_copy() for (i, _), a in self.accounts.items() if i == identity),
                key=lambda a: a.merchant,
            )


class FakeMerchantSettingsRepository:
    def __init__(self) -> None:
        self.settings: dict[str, MerchantLoyaltySettings] = {}
        self.create_calls = 0

    def find(self, merchant: str) -> MerchantLoyaltySettings | None:
        return self.settings.get(merchant)

    def create_if_absent(
        self, settings: MerchantLoyaltySettings
    ) -> MerchantLoyaltySettings:
        self.create_calls += 1
        if settings.merchant not in self.settings:
            now = _now()
            self.settings[settings.merchant] = settings.model_copy(
                update={"created_at": now, "updated_at": now}
            )
        return self.settings[settings.merchant]

    def save(self, settings: MerchantLoyaltySettings) -> MerchantLoyaltySettings:
        stored = settings.model_copy(update={"updated_at": _now()})
        self.settings[settings.merchant] = stored
        return stored


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: dict[str, TelegramUser] = {}
        self.raise_duplicate_once = False

    def find_by_telegram_id(self, telegram_id: str) -> TelegramUser | None:
        return self.users.get(telegram_id)

    def insert(self, user: TelegramUser) -> TelegramUser:
        if self.raise_duplicate_once:
            # 다른 요청이 먼저 만든 상황
            self.raise_duplicate_once = False
            self.users[user.telegram_id] = user.model_copy(update={"first_name": "racer"})
            raise DuplicateUserError(user.telegram_id)
        if user.telegram_id in self.users:
            raise DuplicateUserError(user.telegram_id)
        self.users[user.telegram_id] = user
        return user

    def update_profile(
        self,
        telegram_id: str,
        first_name: str,
        last_name: str,
        username: str,
        photo_url: str,
    ) -> TelegramUser | None:
        existing = self.users.get(telegram_id)
        if existing is None:
            return None
        updated = existing.model_copy(
            update={
                "first_name": first_name,
                "last_name": last_name,
                "username": username,
                "photo_url": photo_url,
                "updated_at": _now(),
            }
        )
        self.users[telegram_id] = updated
        return updated


class FakeFavoriteRepository:
    def __init__(self) -> None:
        self.items: list[FavoriteCafe] = []

    def create(self, favorite: FavoriteCafe) -> FavoriteCafe:
        for item in self.items:
            if item.telegram_id == favorite.telegram_id and item.cafe_id == favorite.cafe_id:
                return item
        stored = favorite.model_copy(update={"id": f"fav-{len(self.items) + 1}"})
        self.items.append(stored)
        return stored

    def delete(self, telegram_id: str, cafe_id: str) -> bool:
        before = len(self.items)
        self.items = [
            i for i in self.items if not (i.telegram_id == telegram_id and i.cafe_id == cafe_id)
        ]
        return len(self.items) < before

    def list_by_user(
        self, telegram_id: str, page: int, page_size: int
    ) -> tuple[list[FavoriteCafe], int]:
        mine = [i for i in self.items if i.telegram_id == telegram_id]
        mine.sort(key=lambda i: i.created_at, reverse=True)
        start = (page - 1) * page_size
        return mine[start : start + page_size], len(mine)

    def list_cafe_ids_for_user(self, telegram_id: str, cafe_ids: list[str]) -> list[str]:
        return [
            i.cafe_id
            for i in self.items
            if i.telegram_id == telegram_id and i.cafe_id in cafe_ids
        ]


def sequence_generator(*codes: str) -> Callable[[], str]:
    """정해진 순서대로 후보 코드를 내놓는 생성기. 다 쓰면 에러."""

    iterator: Iterator[str] = iter(codes)

    def _next() -> str:
        return next(iterator)

    return _next


@pytest.fixture
def code_repo() -> FakeUserCodeRepository:
    return FakeUserCodeRepository()


@pytest.fixture
def loyalty_repo() -> FakeLoyaltyAccountRepository:
    return FakeLoyaltyAccountRepository()


@pytest.fixture
def registry(code_repo: FakeUserCodeRepository) -> CodeRegistryService:
    return CodeRegistryService(code_repo)


@pytest.fixture
def ledger(loyalty_repo: FakeLoyaltyAccountRepository) -> LoyaltyLedgerService:
    return LoyaltyLedgerService(loyalty_repo, max_attempts=5)


@pytest.fixture
def settings_repo() -> FakeMerchantSettingsRepository:
    return FakeMerchantSettingsRepository()


@pytest.fixture
def merchant_settings(
    settings_repo: FakeMerchantSettingsRepository,
) -> MerchantSettingsService:
    return MerchantSettingsService(settings_repo)
