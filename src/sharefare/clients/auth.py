"""Authorization header construction."""

import re

BEARER_PREFIX = re.compile(r"^bearer(\s+|$)", re.IGNORECASE)


def normalize_token(raw: str | None) -> str:
    """
    Reduce a stored credential to the bare token.

    Strips surrounding whitespace and stray quotes, and drops an existing
    ``Bearer`` prefix (any case, any whitespace after it) so it is never
    doubled. A value that is only the prefix normalizes to an empty string.

    Args:
        raw: Value as read from storage

    Returns:
        The bare token, or an empty string when nothing usable remains
    """
    token = (raw or "").strip()
    if token.startswith('"'):
        token = token[1:]
    if token.endswith('"'):
        token = token[:-1]
    token = token.strip()

    match = BEARER_PREFIX.match(token)
    if match:
        token = token[match.end() :].strip()

    return token


def build_auth_header(token: str | None) -> str:
    """Return ``Bearer <token>``, or an empty string for a blank token."""
    bare = normalize_token(token)
    return f"Bearer {bare}" if bare else ""
