# g2history/auth.py
"""Static bearer-token check for protected routes."""

import hmac
from typing import Optional

from .errors import Unauthorized

BEARER_PREFIX = "bearer "


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header value."""
    if not header:
        return None
    value = header.strip()
    if value[: len(BEARER_PREFIX)].lower() != BEARER_PREFIX:
        return None
    token = value[len(BEARER_PREFIX):].strip()
    return token or None


def is_authorized(header: Optional[str], secret: Optional[str]) -> bool:
    """
    True when `header` carries exactly `secret` as a bearer token.

    With no secret configured nothing is authorized.
    """
    if not secret:
        return False
    token = extract_bearer_token(header)
    if token is None:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


def require_authorized(header: Optional[str], secret: Optional[str]) -> None:
    if not is_authorized(header, secret):
        raise Unauthorized("Missing or invalid bearer token")
