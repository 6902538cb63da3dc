"""Shared schemas: pagination and list envelopes."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


class Pagination(BaseModel):
    offset: int = Field(0, ge=0)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)


class Page(BaseModel, Generic[T]):
    data: list[T]
    total: int
    offset: int
    limit: int


class MessageResponse(BaseModel):
    message: str
