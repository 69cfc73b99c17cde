"""
Pagination helpers shared by list endpoints

Author: TM3
Date: 2025-10-17
"""
import math
from typing import Tuple


def normalize_paging(page: int, limit: int, default_limit: int, max_limit: int) -> Tuple[int, int, int]:
    """
    Clamp page/limit into valid ranges and compute the SQL offset.

    Returns:
        Tuple of (page, limit, offset)
    """
    page = max(1, int(page or 1))
    limit = int(limit or default_limit)
    if limit < 1:
        limit = default_limit
    limit = min(limit, max_limit)
    return page, limit, (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> dict:
    """Pagination block returned alongside every paged list"""
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "items_per_page": limit,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }
