"""Response helpers for the widget protocol.

The widget protocol uses a flat ``success`` flag envelope rather than a
``data`` wrapper, because the embed script consumed by third-party pages
reads ``settings``/``results`` straight off the response body.
"""

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .logging import get_logger

logger = get_logger(__name__)


def to_serializable(obj: Any) -> Any:
    """Recursively convert Pydantic models, lists, and dicts to serializable types."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(by_alias=True, exclude_none=True)
    if isinstance(obj, list):
        return [to_serializable(item) for item in obj]
    if isinstance(obj, dict):
        return {k: to_serializable(v) for k, v in obj.items()}
    return obj


class WidgetResponse:
    """Response factory producing ``{"success": ...}`` envelopes."""

    @staticmethod
    def success(
        data: Any, status_code: int = status.HTTP_200_OK, headers: dict[str, str] | None = None
    ) -> JSONResponse:
        """Create a successful response.

        Args:
            data: A Pydantic model or mapping whose fields are merged into the body
            status_code: HTTP status code (default: 200)
            headers: Optional response headers

        Returns:
            JSONResponse whose body starts with ``success: true``

        """
        body = to_serializable(data)
        if not isinstance(body, dict):
            body = {"data": body}
        content = jsonable_encoder({"success": True, **{k: v for k, v in body.items() if k != "success"}})

        logger.debug(
            "Creating success response",
            extra={"status_code": status_code, "data_type": type(data).__name__},
        )
        return JSONResponse(content=content, status_code=status_code, headers=headers)

    @staticmethod
    def error(
        message: str,
        code: str = "API_ERROR",
        details: dict[str, Any] | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        debug: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Create an error response.

        Args:
            message: Human readable error shown by the widget
            code: Machine readable error code
            details: Extra top-level fields (e.g. ``uid`` for not-found)
            status_code: HTTP status code (default: 400)
            debug: Diagnostic payload, only passed in non-production
            headers: Optional response headers

        Returns:
            JSONResponse whose body starts with ``success: false``

        """
        content: dict[str, Any] = {"success": False, "error": message, "code": code}
        for key, value in (details or {}).items():
            content.setdefault(key, to_serializable(value))
        if debug:
            content["debug"] = to_serializable(debug)

        logger.debug(
            "Creating error response",
            extra={"status_code": status_code, "error_code": code, "has_details": bool(details)},
        )
        return JSONResponse(content=jsonable_encoder(content), status_code=status_code, headers=headers)
