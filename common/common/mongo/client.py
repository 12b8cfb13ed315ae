from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import ASCENDING, DESCENDING, IndexModel, MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError

from .config import (
    get_mongo_db_name,
    get_mongo_uri,
    get_server_selection_timeout_ms,
)


logger = logging.getLogger(__name__)


USER_CODES_COLLECTION = "user_codes"
LOYALTY_ACCOUNTS_COLLECTION = "loyalty_accounts"
USERS_COLLECTION = "users"
FAVORITES_COLLECTION = "favorites"
MERCHANT_SETTINGS_COLLECTION = "merchant_loyalty_settings"

# 활성 코드(active=true)끼리만 유니크해야 하므로 부분 인덱스로 건다.
ACTIVE_CODE_INDEX = "uniq_active_code"
ACTIVE_IDENTITY_INDEX = "uniq_active_identity"


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """프로세스 전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI / MONGO_DB_NAME 환경 변수로 접속 정보를 결정한다.
    - ping 으로 연결을 검증하고, 실패하면 즉시 RuntimeError 를 낸다.
    - 코드/포인트 불변식을 지키는 유니크 인덱스를 최초 1회 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        client: MongoClient = MongoClient(
            get_mongo_uri(),
            serverSelectionTimeoutMS=get_server_selection_timeout_ms(),
            tz_aware=True,
        )

        try:
            client.admin.command("ping")
        except PyMongoError as exc:
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            db = client[db_name] if db_name else client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            ensure_indexes(db)
        except PyMongoError as exc:
            # 유니크 인덱스 없이 뜨면 코드 중복/계정 중복이 가능해지므로 치명적 오류로 본다.
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            client.close()
            raise

        _client = client
        _db = db
        logger.info("MongoDB connected and indexes ensured (db=%s)", db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다. FastAPI Depends 에서도 그대로 쓴다."""

    if _db is None:
        get_client()
    assert _db is not None
    return _db


def ensure_indexes(db: Database) -> None:
    """서비스가 기대하는 인덱스를 만든다. 이미 있으면 MongoDB 가 무시하므로 idempotent 하다."""

    active_only = {"active": True}

    db[USER_CODES_COLLECTION].create_indexes(
        [
            IndexModel(
                [("code", ASCENDING)],
                name=ACTIVE_CODE_INDEX,
                unique=True,
                partialFilterExpression=active_only,
            ),
            IndexModel(
                [("identity", ASCENDING)],
                name=ACTIVE_IDENTITY_INDEX,
                unique=True,
                partialFilterExpression=active_only,
            ),
            IndexModel(
                [("code", ASCENDING), ("created_at", DESCENDING)],
                name="idx_code_history",
            ),
        ]
    )

    db[LOYALTY_ACCOUNTS_COLLECTION].create_indexes(
        [
            IndexModel(
                [("identity", ASCENDING), ("merchant", ASCENDING)],
                name="uniq_identity_merchant",
                unique=True,
            ),
        ]
    )

    db[MERCHANT_SETTINGS_COLLECTION].create_indexes(
        [
            IndexModel(
                [("merchant", ASCENDING)],
                name="uniq_merchant",
                unique=True,
            ),
        ]
    )

    db[USERS_COLLECTION].create_indexes(
        [
            IndexModel(
                [("telegram_id", ASCENDING)],
                name="uniq_telegram_id",
                unique=True,
            ),
        ]
    )

    db[FAVORITES_COLLECTION].create_indexes(
        [
            IndexModel(
                [("telegram_id", ASCENDING), ("cafe_id", ASCENDING)],
                name="uniq_telegram_id_cafe_id",
                unique=True,
            ),
            IndexModel(
                [("telegram_id", ASCENDING), ("created_at", DESCENDING)],
                name="idx_telegram_id_created_at",
            ),
        ]
    )
