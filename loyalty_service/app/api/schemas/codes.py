from __future__ import annotations

from pydantic import BaseModel, Field


class IdentityRequest(BaseModel):
    identity: str = Field(min_length=1, description="외부 유저 식별자 (예: 텔레그램 id)")


class UserCodeResponse(BaseModel):
    identity: str
    code: str


class RetireCodeResponse(BaseModel):
    code: str
    retired: bool
