import math
from typing import Any, List, Tuple

from sqlalchemy.orm import Query


def paginate(query: Query, page: int, size: int) -> Tuple[List[Any], dict]:
    """Slice ``query`` and build the usual pagination metadata"""
    total = query.count()

    offset = (page - 1) * size
    items = query.offset(offset).limit(size).all()

    total_pages = math.ceil(total / size) if size > 0 else 0
    pagination = {
        "total": total,
        "page": page,
        "size": size,
        "total_pages": total_pages,
    }

    return items, pagination
