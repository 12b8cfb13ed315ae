"""로열티 포인트 도메인 모델.

(identity, merchant) 쌍마다 계정 하나. points 는 절대 음수가 되지 않는다.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# BSON int64 상한. 잔액은 이 값을 넘길 수 없다.
POINTS_MAX = 2**63 - 1


class LoyaltyAccount(BaseModel):
    """매장별 포인트 계정."""

    id: str | None = None
    identity: str
    merchant: str
    points: int = Field(default=0, ge=0, le=POINTS_MAX)
    version: int = 0  # CAS 토큰. 포인트가 바뀔 때마다 1씩 증가
    created_at: datetime
    updated_at: datetime  # 마지막 변경 시각 (lastUpdated)
