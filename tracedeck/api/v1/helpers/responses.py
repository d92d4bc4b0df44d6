"""
Response bodies shared by the dashboard API.

Errors travel as ``HTTPException`` whose ``detail`` is an ``APIResponse`` dump:
``{"success": false, "message": ..., "data": null, "errors": [...]}``. The
``*_response`` helpers only build the exception; callers ``raise`` it.

The public API does not use these; it answers with its own flat bodies.
"""

from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel


class APIResponse(BaseModel):
    success: bool
    message: str
    data: Any | None = None
    errors: list[str] | None = None


def success_response(message: str = "Success", data: Any = None) -> APIResponse:
    return APIResponse(success=True, message=message, data=data)


def error_response(
    message: str = "An error occurred",
    errors: list[str] | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    body = APIResponse(success=False, message=message, errors=errors or [])
    return HTTPException(status_code=status_code, detail=body.model_dump())


def validation_error_response(
    errors: list[str], message: str = "Validation failed"
) -> HTTPException:
    """422 for requests that are well-formed but inconsistent with stored data."""
    return error_response(message, errors, status.HTTP_422_UNPROCESSABLE_ENTITY)


def not_found_response(message: str = "Resource not found") -> HTTPException:
    return error_response(message, status_code=status.HTTP_404_NOT_FOUND)


def forbidden_response(message: str = "Access forbidden") -> HTTPException:
    return error_response(message, status_code=status.HTTP_403_FORBIDDEN)


def unauthorized_response(message: str = "Authentication required") -> HTTPException:
    return error_response(message, status_code=status.HTTP_401_UNAUTHORIZED)
