"""Turn server error responses into one readable message."""

import logging

import httpx
from pydantic import ValidationError

from ..models import (
    ErrorBody,
    ErrorFieldBody,
    ErrorsListBody,
    ErrorsMapBody,
    MessageErrorBody,
    StatusErrorBody,
)

logger = logging.getLogger(__name__)

# Checked in this order; the first shape yielding a non-empty message wins.
_ERROR_SHAPES: tuple[type[ErrorBody], ...] = (
    MessageErrorBody,
    ErrorFieldBody,
    ErrorsListBody,
    ErrorsMapBody,
    StatusErrorBody,
)

_STATUS_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Your session has expired. Please log in again.",
    403: "You don't have permission to perform this action.",
    404: "The requested resource was not found.",
    422: "Validation failed. Please check your input.",
    500: "Server error. Please try again later.",
    503: "Service temporarily unavailable. Please try again later.",
}


def message_from_body(body: ErrorBody) -> str:
    """Flatten a parsed error body into a single string."""
    if isinstance(body, MessageErrorBody):
        return body.message
    if isinstance(body, ErrorFieldBody):
        return body.error if isinstance(body.error, str) else body.error.message
    if isinstance(body, ErrorsListBody):
        return ", ".join(body.errors)
    if isinstance(body, ErrorsMapBody):
        messages: list[str] = []
        for value in body.errors.values():
            if isinstance(value, str):
                messages.append(value)
            else:
                messages.extend(value)
        return ", ".join(messages)
    if isinstance(body, StatusErrorBody):
        return body.status.message
    raise TypeError(f"Unhandled error body shape: {type(body).__name__}")


def parse_error_body(data: object) -> ErrorBody | None:
    """Match a decoded JSON body against the known error shapes."""
    if not isinstance(data, dict):
        return None

    for shape in _ERROR_SHAPES:
        try:
            body = shape.model_validate(data)
        except ValidationError:
            continue
        if message_from_body(body):
            return body

    return None


def extract_error_message(response: httpx.Response) -> str:
    """
    Build a human-readable message from an error response.

    Args:
        response: A non-2xx response from an authenticated call

    Returns:
        The server's message, else the reason phrase, else ``Error <status>``
    """
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            body = parse_error_body(response.json())
        except ValueError:
            logger.debug(f"Error response {response.status_code} is not valid JSON")
        else:
            if body is not None:
                return message_from_body(body)

    return response.reason_phrase or f"Error {response.status_code}"


def status_error_message(status_code: int) -> str:
    """Generic user-facing text for a status code."""
    return _STATUS_MESSAGES.get(status_code, "Something went wrong. Please try again.")
