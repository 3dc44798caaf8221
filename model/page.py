from typing import Optional

from sqlmodel import SQLModel, Field


class Page(SQLModel):
    id: Optional[int] = Field(default=None)
    name: str
    content: Optional[str] = None


class PageCreate(SQLModel):
    title: str = Field(min_length=1)
    markdown: str = ""


class PageUpdate(SQLModel):
    markdown: str
