from __future__ import annotations

from common.mongo.types import BaseDocument, from_object_id

from ...models.loyalty import LoyaltyAccount


class LoyaltyAccountDocument(BaseDocument):
    """MongoDB loyalty_accounts 컬렉션 도큐먼트 모델.

    version 필드가 없는 예전 도큐먼트는 version=0 으로 읽는다.
    """

    identity: str
    merchant: str
    points: int
    version: int = 0

    def to_domain(self) -> LoyaltyAccount:
        return LoyaltyAccount(
            id=from_object_id(self.id),
            identity=self.identity,
            merchant=self.merchant,
            points=max(0, self.points),
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
