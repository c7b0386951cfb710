"""
SDK Exception Classes

Errors raised by the Endercom SDK. Platform-facing operations (polling,
dispatch, sending, talking) log and return sentinels instead of raising;
these exceptions surface configuration problems, inbound request
rejections and handler failures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class EndercomError(Exception):
    """
    Root of the SDK's exception tree.

    ``code`` is a stable machine-readable tag (``AUTH_ERROR``,
    ``HANDLER_ERROR`` ...) and ``details`` carries the structured extras a
    subclass records, such as the rejected setting or the auth reason.
    """

    code: Optional[str] = None

    def __init__(
        self,
        message: str = "Endercom SDK error",
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = dict(details) if details else {}

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready body: ``{"error": message}`` plus ``details``."""
        return {"error": self.message, **self.details}

    def __str__(self) -> str:
        return f"{self.message} ({self.code})" if self.code else self.message


class ConfigurationError(EndercomError):
    """Agent or server configuration is missing or invalid."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        *,
        setting: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code="CONFIG_ERROR", **kwargs)
        self.setting = setting
        if setting:
            self.details["setting"] = setting


class AuthenticationError(EndercomError):
    """Inbound request failed frequency API key authentication."""

    def __init__(
        self,
        message: str = "Authentication failed",
        *,
        reason: str = "invalid_api_key",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code="AUTH_ERROR", **kwargs)
        self.reason = reason
        self.details["reason"] = reason


class ValidationError(EndercomError):
    """Inbound request body is missing a required field."""

    def __init__(
        self,
        message: str = "Validation failed",
        *,
        field: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code="VALIDATION_ERROR", **kwargs)
        self.field = field
        if field:
            self.details["field"] = field


class HandlerError(EndercomError):
    """The message handler raised, or returned something other than text.

    ``cause`` holds the exception the handler raised, if any.
    """

    def __init__(
        self,
        message: str = "Message handler failed",
        *,
        message_id: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code="HANDLER_ERROR", **kwargs)
        self.message_id = message_id
        self.cause = cause
        if message_id:
            self.details["message_id"] = message_id


class ServerUnavailableError(EndercomError):
    """The HTTP serving stack (FastAPI / uvicorn) could not be loaded."""

    def __init__(
        self,
        message: str = (
            "FastAPI and uvicorn are required for server wrapper functionality. "
            "Install with: pip install fastapi uvicorn"
        ),
        **kwargs: Any,
    ) -> None:
        super().__init__(message, code="SERVER_UNAVAILABLE", **kwargs)
