from __future__ import annotations

from common.mongo.types import BaseDocument, MongoDateTime, from_object_id

from ...models.user_code import UserCode


class UserCodeDocument(BaseDocument):
    """MongoDB user_codes 컬렉션 도큐먼트 모델."""

    identity: str
    code: str
    active: bool
    retired_at: MongoDateTime | None = None

    @classmethod
    def from_domain(cls, record: UserCode) -> "UserCodeDocument":
        # 도메인 id 는 문자열이라 _id 는 비워 두고 Mongo 가 생성하게 한다.
        return cls.model_validate(record.model_dump(exclude={"id"}))

    def to_domain(self) -> UserCode:
        return UserCode(
            id=from_object_id(self.id),
            identity=self.identity,
            code=self.code,
            active=self.active,
            created_at=self.created_at,
            updated_at=self.updated_at,
            retired_at=self.retired_at,
        )
