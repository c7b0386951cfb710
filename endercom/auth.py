"""Frequency API key authentication for the inbound HTTP routes."""

from __future__ import annotations

import hmac
from typing import Optional

from endercom.exceptions import AuthenticationError


MISSING_AUTHORIZATION = "missing_authorization"
INVALID_AUTHORIZATION_FORMAT = "invalid_authorization_format"
EMPTY_API_KEY = "empty_api_key"
INVALID_API_KEY = "invalid_api_key"


def extract_bearer_key(authorization: Optional[str]) -> str:
    """
    Pull the API key out of an ``Authorization: Bearer <key>`` header.

    Raises:
        AuthenticationError: If the header is missing, malformed or empty
    """
    if not authorization:
        raise AuthenticationError(
            "Missing Authorization header. Provide: Authorization: Bearer {frequency_api_key}",
            reason=MISSING_AUTHORIZATION,
        )

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError(
            "Invalid Authorization header format. Use: Bearer {frequency_api_key}",
            reason=INVALID_AUTHORIZATION_FORMAT,
        )

    api_key = parts[1].strip()
    if not api_key:
        raise AuthenticationError("API key is empty", reason=EMPTY_API_KEY)
    return api_key


def verify_frequency_key(authorization: Optional[str], expected_key: str) -> str:
    """
    Check an Authorization header against the configured frequency key.

    Returns:
        The accepted API key

    Raises:
        AuthenticationError: With a ``reason`` naming the failed check
    """
    api_key = extract_bearer_key(authorization)
    if not hmac.compare_digest(api_key.encode(), expected_key.encode()):
        raise AuthenticationError(
            "Invalid frequency API key. The provided key does not match "
            "this frequency's auth_key.",
            reason=INVALID_API_KEY,
        )
    return api_key
