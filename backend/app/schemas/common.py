"""
Quiz Platform - Common Schemas
Uniform response envelope used by every endpoint
"""
from typing import Generic, TypeVar

from pydantic import BaseModel

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """{success, data?, error?, code?}"""
    success: bool = True
    data: DataT | None = None
    error: str | None = None
    code: str | None = None
    message: str | None = None


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    code: str | None = None
