"""Success envelope helpers shared by the role routers"""

from typing import Any

from ..domain.scheduling.schemas import Page


def success(message: str = "OK", **payload: Any) -> dict[str, Any]:
    """``{"success": true, "message": ..., <payload>}``"""
    return {"success": True, "message": message, **payload}


def page_payload(page: Page) -> dict[str, Any]:
    return {
        "appointments": page.items,
        "pagination": {
            "page": page.page,
            "pageSize": page.page_size,
            "total": page.total,
            "totalPages": page.total_pages,
        },
    }
