"""Utility helpers shared across the test-suite."""

from __future__ import annotations

import re
from typing import Any


_CSRF_RE = re.compile(r'name=["\']csrf_token["\'][^>]*value=["\']([^"\']+)["\']', re.IGNORECASE)


def extract_csrf_token(response: Any, *, required: bool = True) -> str:
    """Return the first CSRF token found in ``response`` HTML content."""

    if hasattr(response, "data"):
        html: str = response.data.decode("utf-8")
    elif isinstance(response, (bytes, bytearray)):
        html = response.decode("utf-8")
    else:
        html = str(response)
    match = _CSRF_RE.search(html)
    if not match:
        if required:
            raise AssertionError("CSRF token not found in response")
        return ""
    return match.group(1)


def login(client, email: str, password: str, **extra):
    """Helper to login a user in tests, respecting CSRF protection."""

    login_page = client.get("/login")
    token = extract_csrf_token(login_page, required=False)
    form_data = {"email": email, "password": password, **extra}
    if token:
        form_data["csrf_token"] = token
    return client.post("/login", data=form_data, follow_redirects=True)


def make_app(database_uri: str, **overrides):
    """Build another application on ``database_uri``, like a second worker."""

    from app import create_app

    config = {
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "RATELIMIT_ENABLED": False,
        "SQLALCHEMY_DATABASE_URI": database_uri,
        "ACTIVITY_LOG_BATCH_SIZE": 1,
    }
    config.update(overrides)
    return create_app(["--demo"], config)
