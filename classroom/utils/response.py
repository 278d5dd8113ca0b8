"""
Standard API response format and utility functions.
"""

import math
from typing import Any

MAX_PAGE_SIZE = 100


def success_response(data: Any = None, message: str = "Success", **extra) -> dict:
    """Envelope for successful calls; `extra` carries count, pagination and similar siblings of `data`."""
    return {"success": True, "data": data, "message": message, **extra}


def error_response(message: str = "Error", data: Any = None) -> dict:
    return {"success": False, "data": data, "message": message}


def list_response(items: list, message: str = "Success") -> dict:
    return success_response(data=items, message=message, count=len(items))


def pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
