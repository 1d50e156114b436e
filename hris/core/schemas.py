import math
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel
from sqlalchemy.orm import Query


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit) if limit else 0)


def paginate(query: Query, page: int = 1, limit: int = 10) -> Tuple[List[Any], Dict[str, int]]:
    """Apply offset/limit to a query and return (items, pagination dict)."""
    page = max(page, 1)
    limit = max(limit, 1)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, Pagination.build(page, limit, total).model_dump()


def paginate_list(items: List[Any], page: int = 1, limit: int = 10) -> Tuple[List[Any], Dict[str, int]]:
    """Same as paginate() for rows already loaded in memory."""
    page = max(page, 1)
    limit = max(limit, 1)
    start = (page - 1) * limit
    return items[start:start + limit], Pagination.build(page, limit, len(items)).model_dump()
