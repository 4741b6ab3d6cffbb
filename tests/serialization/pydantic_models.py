"""Pydantic models shared by serialization tests (importable by module name)."""

from pydantic import BaseModel, Field


class Badge(BaseModel):
    code: str


class Member(BaseModel):
    name: str
    badge: Badge | None = None
    roles: list[str] = []
    password: str = Field(default="", exclude=True)
