"""Credential sign-in for the dashboard.

Providers are looked up by name and return the matching :class:`User` or
``None``.  :func:`sign_in` turns every failure into an :class:`AuthError`
whose ``type`` says what went wrong, and :func:`authenticate` maps those
types to the message shown on the login page.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from flask import current_app
from flask_login import login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import check_password_hash

from app.forms import LoginForm
from app.models import User
from app.utils.activity import log_activity

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials."
INACTIVE_ACCOUNT_MESSAGE = "Please contact system admin to activate account."
GENERIC_AUTH_MESSAGE = "Something went wrong."


class AuthError(Exception):
    """Base class for sign-in failures."""

    type = "AuthError"


class CredentialsSignin(AuthError):
    type = "CredentialsSignin"


class AccessDenied(AuthError):
    type = "AccessDenied"


class CallbackRouteError(AuthError):
    type = "CallbackRouteError"


class Configuration(AuthError):
    type = "Configuration"


def authorize_credentials(form: LoginForm) -> Optional[User]:
    """Return the user whose email and password match ``form``."""

    if not form.validate():
        return None
    user = User.query.filter_by(email=form.email.data.strip()).first()
    if user is None:
        return None
    if not check_password_hash(user.password, form.password.data):
        return None
    return user


PROVIDERS: Dict[str, Callable[[LoginForm], Optional[User]]] = {
    "credentials": authorize_credentials,
}


def sign_in(provider: str, form: LoginForm) -> User:
    """Authorize ``form`` with ``provider`` and start a session."""

    authorize = PROVIDERS.get(provider)
    if authorize is None:
        raise Configuration(f"Unknown sign-in provider {provider!r}")
    try:
        user = authorize(form)
    except SQLAlchemyError as exc:
        raise CallbackRouteError("Credential lookup failed") from exc
    if user is None:
        raise CredentialsSignin("Invalid email or password")
    if not user.active:
        raise AccessDenied(f"User {user.id} is not active")

    login_user(user)
    log_activity("Logged in", user.id)
    return user


def sign_out(user_id: Optional[int]) -> None:
    logout_user()
    log_activity("Logged out", user_id)


def authenticate(form: LoginForm) -> Optional[str]:
    """Sign in with the credentials in ``form``.

    Returns ``None`` on success or the message to show on the login page.
    Errors that are not :class:`AuthError` propagate.
    """

    try:
        sign_in("credentials", form)
    except AuthError as error:
        current_app.logger.warning(
            "Sign-in failed (%s): %s", error.type, error
        )
        if error.type == "CredentialsSignin":
            return INVALID_CREDENTIALS_MESSAGE
        if error.type == "AccessDenied":
            return INACTIVE_ACCOUNT_MESSAGE
        return GENERIC_AUTH_MESSAGE
    return None
