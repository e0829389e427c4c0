# assessment_engine/schemas/common.py
from pydantic import BaseModel


class PageMeta(BaseModel):
    page: int
    limit: int
    total: int
    has_more: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PageMeta":
        return cls(page=page, limit=limit, total=total, has_more=page * limit < total)
