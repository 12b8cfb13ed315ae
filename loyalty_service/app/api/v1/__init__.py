from fastapi import APIRouter

from .codes import router as codes_router
from .favorites import router as favorites_router
from .loyalty import router as loyalty_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(codes_router, prefix="/codes", tags=["codes"])
api_router.include_router(
    loyalty_router
)  # prefix는 router 파일 내부에서 정의되어 있음 (/loyalty)
api_router.include_router(users_router, prefix="/users", tags=["users"])
api_router.include_router(favorites_router, prefix="/favorites", tags=["favorites"])
