"""Admin trade-mode schemas."""

from typing import Literal, Optional

from pydantic import BaseModel


class GlobalModeRequest(BaseModel):
    mode: str


class GlobalModeResponse(BaseModel):
    success: bool = True
    mode: Literal["AUTO", "ALL_WIN", "ALL_LOSE"]


class UserModeRequest(BaseModel):
    mode: Optional[str] = None  # WIN | LOSE | null/"" to clear


class UserModeResponse(BaseModel):
    success: bool = True
    user_id: str
    mode: Optional[str] = None
    removed: bool = False
