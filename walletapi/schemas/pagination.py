from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page-based pagination block returned by list endpoints"""

    current: int = Field(..., ge=1, description="current page")
    pages: int = Field(..., ge=0, description="total pages")
    total: int = Field(..., ge=0, description="total items")

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(current=page, pages=pages, total=total)
