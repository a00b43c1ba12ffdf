from __future__ import annotations

from typing import Any, Optional

from fastapi.responses import JSONResponse

from zenalyst.services.aggregation import PaginationInfo


def success(message: str, data: Any = None) -> dict:
    return {"success": True, "message": message, "data": data}


def paginated(message: str, items: list, pagination: PaginationInfo, **extra) -> dict:
    body = success(message, items)
    body["pagination"] = pagination.to_dict()
    body.update(extra)
    return body


def error(status_code: int, message: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "error": detail},
    )
