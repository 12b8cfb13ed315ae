"""로열티 포인트 레포지토리 구현체.

포인트 갱신은 읽은 version 을 조건으로 거는 compare-and-set 으로만 수행한다.
재시도 정책은 서비스 레이어가 가진다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from common.mongo.client import LOYALTY_ACCOUNTS_COLLECTION

from .documents.loyalty_document import LoyaltyAccountDocument
from .interfaces import LoyaltyAccountRepositoryInterface
from ..models.loyalty import LoyaltyAccount


class LoyaltyAccountRepository(LoyaltyAccountRepositoryInterface):
    """loyalty_accounts 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database[LOYALTY_ACCOUNTS_COLLECTION]

    def find(self, identity: str, merchant: str) -> LoyaltyAccount | None:
        doc = self._col.find_one({"identity": identity, "merchant": merchant})
        if not doc:
            return None
        return LoyaltyAccountDocument.model_validate(doc).to_domain()

    def create_if_absent(self, identity: str, merchant: str) -> bool:
        now = datetime.now(timezone.utc)
        try:
            result = self._col.update_one(
                {"identity": identity, "merchant": merchant},
                {
                    "$setOnInsert": {
                        "identity": identity,
                        "merchant": merchant,
                        "points": 0,
                        "version": 0,
                        "created_at": now,
                        "updated_at": now,
                    }
                },
                upsert=True,
            )
        except DuplicateKeyError:
            # 동시에 들어온 다른 upsert 가 먼저 만들었다 -> 이미 가입된 상태
            return False
        return result.upserted_id is not None

    def compare_and_set_points(
        self,
        identity: str,
        merchant: str,
        expected_version: int,
        points: int,
    ) -> bool:
        now = datetime.now(timezone.utc)
        version_filter: Any = expected_version
        if expected_version == 0:
            # version 필드가 없는 예전 도큐먼트도 version=0 으로 취급
            version_filter = {"$in": [0, None]}

        result = self._col.update_one(
            {
                "identity": identity,
                "merchant": merchant,
                "version": version_filter,
            },
            {
                "$set": {
                    "points": points,
                    "version": expected_version + 1,
                    "updated_at": now,
                }
            },
        )
        return result.matched_count == 1

    def list_by_identity(self, identity: str) -> list[LoyaltyAccount]:
        cursor = self._col.find({"identity": identity}, sort=[("merchant", 1)])
        return [
            LoyaltyAccountDocument.model_validate(raw).to_domain() for raw in cursor
        ]
