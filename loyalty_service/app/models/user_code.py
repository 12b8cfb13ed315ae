"""유저 코드 도메인 모델.

매장(POS)에서 고객이 제시하는 8자리 숫자 코드와 고객 식별자의 매핑이다.
코드는 삭제하지 않고 active=False 로 은퇴시켜 이력을 남긴다.
"""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel


CODE_MIN = 10_000_000
CODE_MAX = 99_999_999
CODE_SPACE_SIZE = CODE_MAX - CODE_MIN + 1  # 90,000,000

_CODE_PATTERN = re.compile(r"[1-9][0-9]{7}")


def is_valid_code(value: str) -> bool:
    """8자리(10000000~99999999) 숫자 문자열인지 확인한다."""
    return _CODE_PATTERN.fullmatch(value) is not None


class UserCode(BaseModel):
    """user_codes 컬렉션 레코드 하나."""

    id: str | None = None
    identity: str
    code: str
    active: bool
    created_at: datetime
    updated_at: datetime
    retired_at: datetime | None = None
