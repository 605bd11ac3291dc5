from typing import Optional

from fastapi import Request

from app.domain.errors import Unauthenticated
from app.domain.models import Actor


def request_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, else the session cookie."""
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(request.app.state.settings.SESSION_COOKIE_NAME)


def optional_actor(request: Request) -> Actor:
    """The logged-in user, or a guest when the token is missing, unknown or expired."""
    actor = request.app.state.auth_service.resolve(request_token(request))
    return actor or Actor.guest()


def current_actor(request: Request) -> Actor:
    token = request_token(request)
    if not token:
        raise Unauthenticated("Authentication required.")
    actor = request.app.state.auth_service.resolve(token)
    if actor is None:
        raise Unauthenticated("Invalid or expired token.")
    return actor
