"""
Error responses

Consistent JSON error payloads, and logging of unexpected failures
without leaking internals to the client.
"""

import logging
import uuid
from typing import Optional

from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def error_response(
    message: str,
    category: str,
    status_code: int,
    errors: Optional[list] = None,
) -> JSONResponse:
    """Consistent error payloads across the API."""
    content = {"message": message, "category": category}
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def log_and_sanitize_error(
    error: Exception,
    context: str,
    user_message: Optional[str] = None
) -> tuple[str, str]:
    """
    Log full error details server-side and return sanitized message for client.

    Args:
        error: The exception that occurred
        context: Description of what operation failed (e.g., "Save draft")
        user_message: Optional custom message to show user. If None, uses generic message.

    Returns:
        Tuple of (sanitized_message, error_id) for client response
    """
    error_id = str(uuid.uuid4())[:8]

    logger.error(
        f"{context} failed [{error_id}]: {type(error).__name__}: {str(error)}",
        exc_info=error,
    )

    if user_message:
        sanitized = f"{user_message} (Error ID: {error_id})"
    else:
        sanitized = f"{context} failed. Please try again later. (Error ID: {error_id})"

    return sanitized, error_id
