"""
Standardized response utilities
"""

from typing import Any, Optional
from fastapi.responses import JSONResponse

from campus_events.schemas import ApiResponse, ErrorResponse


def success_response(
    message: str,
    data: Any = None,
    status_code: int = 200,
    count: Optional[int] = None,
    **extra: Any,
) -> JSONResponse:
    """Create standardized success response"""
    response = ApiResponse(success=True, message=message, data=data, count=count)
    content = response.model_dump(exclude={"count"} if count is None else set())
    content.update(extra)
    return JSONResponse(content=content, status_code=status_code)


def error_response(
    message: str,
    error: Optional[str] = None,
    status_code: int = 400,
) -> JSONResponse:
    """Create standardized error response"""
    response = ErrorResponse(message=message, error=error)
    return JSONResponse(
        content=response.model_dump(exclude_none=True),
        status_code=status_code,
    )
