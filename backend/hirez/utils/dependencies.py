from fastapi import Request

from ..config import Settings
from .error_handlers import UnauthorizedError, get_error_message
from .jwt import decode_access_token

SESSION_COOKIE = "auth-token"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _token_from_request(request: Request) -> str | None:
    # An explicit bearer header wins over the browser cookie.
    auth = request.headers.get("Authorization") or ""
    scheme, _, value = auth.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(SESSION_COOKIE) or None


def get_optional_user(request: Request) -> dict | None:
    """Session claims ({"sub", "role", "exp"}) from the cookie or bearer header, if any."""
    token = _token_from_request(request)
    if not token:
        return None
    return decode_access_token(token, secret=get_settings(request).jwt_secret)


def get_current_user(request: Request) -> dict:
    token = _token_from_request(request)
    if not token:
        raise UnauthorizedError(get_error_message("unauthorized"))
    claims = decode_access_token(token, secret=get_settings(request).jwt_secret)
    if not claims or not claims.get("sub"):
        raise UnauthorizedError(get_error_message("session_expired"))
    return claims


def get_storage(request: Request):
    return request.app.state.storage


def get_extractor(request: Request):
    return request.app.state.extractor


def get_mailer(request: Request):
    return request.app.state.mailer
