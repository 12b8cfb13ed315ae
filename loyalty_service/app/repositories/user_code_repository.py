"""유저 코드 레포지토리 구현체.

활성 코드의 유일성은 user_codes 의 부분 유니크 인덱스(active=true)가 쓰기 시점에 보장한다.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import (
    ACTIVE_IDENTITY_INDEX,
    USER_CODES_COLLECTION,
)

from .documents.user_code_document import UserCodeDocument
from .interfaces import UserCodeRepositoryInterface
from ..exceptions import ActiveCodeExistsError, CodeCollisionError
from ..models.user_code import UserCode


class UserCodeRepository(UserCodeRepositoryInterface):
    """user_codes 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database[USER_CODES_COLLECTION]

    @staticmethod
    def _from_document(doc: dict) -> UserCode:
        return UserCodeDocument.model_validate(doc).to_domain()

    def find_active_by_identity(self, identity: str) -> UserCode | None:
        doc = self._col.find_one({"identity": identity, "active": True})
        if not doc:
            return None
        return self._from_document(doc)

    def find_active_by_code(self, code: str) -> UserCode | None:
        doc = self._col.find_one({"code": code, "active": True})
        if not doc:
            return None
        return self._from_document(doc)

    def insert_active(self, identity: str, code: str) -> UserCode:
        now = datetime.now(timezone.utc)
        document = UserCodeDocument.from_domain(
            UserCode(
                identity=identity,
                code=code,
                active=True,
                created_at=now,
                updated_at=now,
            )
        )
        payload = document.to_mongo_record()
        try:
            result = self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            if _is_identity_violation(exc):
                raise ActiveCodeExistsError(
                    f"identity {identity} already holds an active code"
                ) from exc
            raise CodeCollisionError(f"code {code} is already active") from exc

        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def retire(self, code: str) -> bool:
        now = datetime.now(timezone.utc)
        result = self._col.update_one(
            {"code": code, "active": True},
            {"$set": {"active": False, "retired_at": now, "updated_at": now}},
        )
        return result.modified_count > 0

    def count_active(self) -> int:
        return self._col.count_documents({"active": True})


def _is_identity_violation(exc: DuplicateKeyError) -> bool:
    """어느 유니크 인덱스에서 충돌했는지 판별한다 (identity 면 True)."""

    details = exc.details or {}
    key_pattern = details.get("keyPattern") or {}
    if key_pattern:
        return "identity" in key_pattern
    return ACTIVE_IDENTITY_INDEX in str(details.get("errmsg", exc))
