from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError


class FolioError(Exception):
    """Base exception for folio errors."""

    pass


class ContentServiceError(FolioError):
    """Raised when the content service cannot produce a usable record."""

    pass


@dataclass
class ErrorInfo:
    """Normalized information about a failed content fetch.

    The session turns this into a console line; the engines never see it.
    """

    code: str
    message: str
    stage: str
    exception_type: str

    def to_details_dict(self) -> dict[str, Any]:
        return {
            "reason": self.message,
            "reason_code": self.code,
            "error_stage": self.stage,
            "exception_type": self.exception_type,
        }


def classify_fetch_error(exc: Exception) -> ErrorInfo:
    """Map a raw exception raised while fetching content to an ErrorInfo."""

    msg = str(exc) or exc.__class__.__name__
    etype = exc.__class__.__name__

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return ErrorInfo(
            code="service_timeout",
            message="Content service timed out while waiting for a response.",
            stage="fetch",
            exception_type=etype,
        )

    if isinstance(exc, httpx.HTTPStatusError):
        return ErrorInfo(
            code="service_http_status",
            message=f"Content service returned HTTP {exc.response.status_code}.",
            stage="fetch",
            exception_type=etype,
        )

    if isinstance(exc, httpx.HTTPError):
        return ErrorInfo(
            code="service_connection_error",
            message="HTTP error while calling the content service: " + msg,
            stage="fetch",
            exception_type=etype,
        )

    if isinstance(exc, ValidationError):
        return ErrorInfo(
            code="invalid_payload",
            message="Content service payload did not match the expected record shape.",
            stage="parse",
            exception_type=etype,
        )

    if isinstance(exc, ContentServiceError):
        return ErrorInfo(
            code="service_error",
            message=msg,
            stage="fetch",
            exception_type=etype,
        )

    return ErrorInfo(
        code="unexpected_error",
        message=msg,
        stage="unknown",
        exception_type=etype,
    )
