from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from ..repositories.guard import get_store_database


router = APIRouter()


@router.get("/health", summary="헬스 체크 (MongoDB ping 포함)")
def health(db: Database = Depends(get_store_database)) -> JSONResponse:
    # 연결 자체가 안 되면 get_store_database 가 TransientError(503 try_again) 를 낸다.
    try:
        db.command("ping")
    except PyMongoError as exc:
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "store": "unreachable", "error": str(exc)},
        )
    return JSONResponse(content={"status": "ok", "store": "ok"})
