import math


def page_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total_results": total,
        "current_page": page,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "limit": limit,
    }
