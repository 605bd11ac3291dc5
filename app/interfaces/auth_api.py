import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from app.domain.models import Actor, CamelModel
from app.interfaces.dependencies import current_actor, request_token

router = APIRouter()
logger = logging.getLogger(__name__)


class Credentials(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


def _set_session_cookie(request: Request, response: Response, token: str) -> None:
    settings = request.app.state.settings
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
    )


@router.post("/login")
def login(request: Request, response: Response, body: Credentials):
    user, token = request.app.state.auth_service.login(body.username, body.password)
    _set_session_cookie(request, response, token)
    return {"success": True, "role": user.role.value, "token": token}


@router.post("/register")
def register(request: Request, response: Response, body: Credentials):
    user, token = request.app.state.auth_service.register(body.username, body.password)
    _set_session_cookie(request, response, token)
    return {
        "success": True,
        "message": "Registration successful",
        "user": {"username": user.username, "role": user.role.value},
        "token": token,
    }


@router.post("/logout")
def logout(request: Request, response: Response, actor: Actor = Depends(current_actor)):
    request.app.state.auth_service.logout(request_token(request))
    response.delete_cookie(request.app.state.settings.SESSION_COOKIE_NAME)
    logger.info(f"👋 User logged out: {actor.username}")
    return {"success": True, "message": "Logged out successfully"}


@router.get("/user")
def get_user(actor: Actor = Depends(current_actor)):
    return {"username": actor.username, "role": actor.role.value}
