"""유저 코드 레지스트리 서비스.

identity 하나에 활성 코드 하나, 활성 코드끼리는 전역 유일.
중복 확인 후 삽입 사이의 경쟁은 저장소의 유니크 인덱스로 막고, 지면 새 후보로 다시 시도한다.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable

from fastapi import Depends
from pymongo.database import Database

from ..config import LoyaltyConfig, get_settings
from ..exceptions import (
    ActiveCodeExistsError,
    CodeCollisionError,
    RegistryExhaustedError,
)
from ..models.user_code import CODE_MIN, CODE_SPACE_SIZE, is_valid_code
from ..repositories.guard import get_store_database, store_guard
from ..repositories.interfaces import UserCodeRepositoryInterface
from ..repositories.user_code_repository import UserCodeRepository


logger = logging.getLogger(__name__)


def generate_code() -> str:
    """10000000~99999999 범위에서 균등 분포로 후보 코드를 뽑는다."""
    return str(CODE_MIN + secrets.randbelow(CODE_SPACE_SIZE))


class CodeRegistryService:
    """identity <-> 8자리 코드 발급/조회 비즈니스 로직."""

    def __init__(
        self,
        repo: UserCodeRepositoryInterface,
        *,
        code_generator: Callable[[], str] = generate_code,
        default_timeout: float | None = None,
    ) -> None:
        self._repo = repo
        self._generate = code_generator
        self._default_timeout = default_timeout

    def _timeout(self, timeout: float | None) -> float | None:
        return timeout if timeout is not None else self._default_timeout

    def issue_code(self, identity: str, timeout: float | None = None) -> str:
        """활성 코드가 있으면 그대로, 없으면 새로 발급해 반환한다 (idempotent)."""

        with store_guard(self._timeout(timeout)):
            return self._issue(identity)

    def _issue(self, identity: str) -> str:
        attempt = 0
        while True:
            existing = self._repo.find_active_by_identity(identity)
            if existing is not None:
                return existing.code

            attempt += 1
            candidate = self._generate()
            if self._repo.find_active_by_code(candidate) is not None:
                self._on_collision(candidate, attempt)
                continue

            try:
                record = self._repo.insert_active(identity, candidate)
            except CodeCollisionError:
                # 확인과 삽입 사이에 다른 프로세스가 같은 코드를 가져갔다.
                self._on_collision(candidate, attempt)
                continue
            except ActiveCodeExistsError:
                # 같은 identity 로 동시에 발급된 코드가 이겼다. 다시 읽어서 그 코드를 쓴다.
                logger.info(
                    "concurrent code issuance detected, re-reading",
                    extra={"identity": identity, "attempt": attempt},
                )
                continue

            logger.info(
                "issued user code",
                extra={"identity": identity, "attempt": attempt},
            )
            return record.code

    def _on_collision(self, candidate: str, attempt: int) -> None:
        logger.debug("user code collision (code=%s, attempt=%d)", candidate, attempt)
        if self._repo.count_active() >= CODE_SPACE_SIZE:
            raise RegistryExhaustedError(
                f"all {CODE_SPACE_SIZE} user codes are active"
            )

    def lookup_code(self, identity: str, timeout: float | None = None) -> str | None:
        with store_guard(self._timeout(timeout)):
            record = self._repo.find_active_by_identity(identity)
        if record is None:
            return None
        return record.code

    def resolve_identity(self, code: str, timeout: float | None = None) -> str | None:
        """활성 코드만 identity 로 되돌린다. 은퇴했거나 형식이 틀린 코드는 None."""

        if not is_valid_code(code):
            return None
        with store_guard(self._timeout(timeout)):
            record = self._repo.find_active_by_code(code)
        if record is None:
            return None
        return record.identity

    def retire_code(self, code: str, timeout: float | None = None) -> bool:
        """코드를 비활성으로 돌린다. 레코드는 이력으로 남는다."""

        if not is_valid_code(code):
            return False
        with store_guard(self._timeout(timeout)):
            retired = self._repo.retire(code)
        if retired:
            logger.info("retired user code %s", code)
        return retired

    def reissue_code(self, identity: str, timeout: float | None = None) -> str:
        """현재 활성 코드를 은퇴시키고 새 코드를 발급한다."""

        with store_guard(self._timeout(timeout)):
            current = self._repo.find_active_by_identity(identity)
            if current is not None and self._repo.retire(current.code):
                logger.info(
                    "retired user code for reissue", extra={"identity": identity}
                )
            return self._issue(identity)


def get_user_code_repository(
    db: Database = Depends(get_store_database),
) -> UserCodeRepositoryInterface:
    """FastAPI DI용 UserCodeRepository 팩토리."""

    return UserCodeRepository(db)


def get_code_registry_service(
    repo: UserCodeRepositoryInterface = Depends(get_user_code_repository),
    settings: LoyaltyConfig = Depends(get_settings),
) -> CodeRegistryService:
    """FastAPI DI용 CodeRegistryService 팩토리."""

    return CodeRegistryService(repo, default_timeout=settings.store_timeout_seconds)
