from math import ceil
from typing import Optional, Tuple

from erp.config import settings


def paginate(query, page: int = 1, limit: Optional[int] = None) -> Tuple[list, dict]:
    """Slice a query; returns (rows, pagination dict matching schemas.common.Pagination)."""
    page = max(page or 1, 1)
    limit = min(max(limit or settings.default_page_size, 1), settings.max_page_size)
    total = query.count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": ceil(total / limit) if total else 0,
    }
