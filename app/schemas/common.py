# app/schemas/common.py
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ErrorBody(BaseModel):
    code: str
    message: str


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[ErrorBody] = None


def success(data=None, message: Optional[str] = None) -> dict:
    return {"success": True, "data": data, "message": message}


def failure(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}
