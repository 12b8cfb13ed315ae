from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import pymongo
from pymongo.database import Database
from pymongo.errors import PyMongoError

from common.mongo.client import get_database

from ..exceptions import TransientError


logger = logging.getLogger(__name__)


@contextmanager
def store_guard(timeout: float | None = None) -> Iterator[None]:
    """저장소 호출 구간을 감싼다.

    - timeout(초)이 주어지면 블록 안의 모든 Mongo 호출이 하나의 데드라인을 공유한다.
    - 블록 밖으로 나가는 PyMongoError(타임아웃 포함)는 TransientError 로 분류한다.
      조건부 쓰기는 성공했거나 안 했거나 둘 중 하나이므로 부분 반영 상태는 없다.
    """

    try:
        with pymongo.timeout(timeout):
            yield
    except PyMongoError as exc:
        logger.warning("document store call failed: %s", exc)
        raise TransientError(f"document store unavailable: {exc}") from exc


def get_store_database() -> Database:
    """FastAPI DI용 Database. 연결/인덱스 준비 실패는 TransientError 로 분류한다.

    get_database 는 연결 실패를 RuntimeError 로, 인덱스 생성 실패를 PyMongoError 로 낸다.
    """

    try:
        return get_database()
    except (RuntimeError, PyMongoError) as exc:
        logger.warning("document store connection failed: %s", exc)
        raise TransientError(f"document store unavailable: {exc}") from exc
