"""
Login sessions for the editor.

A successful login stores a session row and sets the session cookie;
write routes on the form store depend on ``require_session``.
"""

import hmac

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from util.logging import logger
from ..core import config, dao
from .schemas import LoginRequest, LoginResponse, LoginUser

router = APIRouter()


def _matches(given: str, expected: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def check_credentials(email: str, password: str) -> bool:
    """Validate credentials against the configured admin account."""
    if not config.ADMIN_EMAIL or not config.ADMIN_PASSWORD:
        logger.error("Login attempted but no admin account configured")
        return False

    # Evaluate both so timing does not reveal which one failed
    email_ok = _matches(email.lower(), config.ADMIN_EMAIL.lower())
    password_ok = _matches(password, config.ADMIN_PASSWORD)
    return email_ok and password_ok


def require_session(request: Request):
    """Dependency gating write routes on a live session cookie."""
    if not config.is_auth_enabled():
        return None

    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    session = dao.get_session(token) if token else None
    if session is None:
        logger.log_auth_event("session_check", success=False)
        raise HTTPException(status_code=401, detail="Authentication required")
    return session


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest):
    """Exchange admin credentials for a session cookie."""
    if not check_credentials(request.email, request.password):
        logger.log_auth_event("login", request.email, success=False)
        return JSONResponse(status_code=401, content={"error": "Invalid credentials"})

    session = dao.create_session(request.email, config.SESSION_MAX_AGE_SEC)
    logger.log_auth_event("login", request.email)

    body = LoginResponse(token=session.token, user=LoginUser(email=session.email))
    response = JSONResponse(content=body.model_dump())
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=session.token,
        max_age=config.SESSION_MAX_AGE_SEC,
        path="/",
        httponly=True,
        samesite="strict",
        secure=config.COOKIE_SECURE
    )
    return response


@router.post("/logout")
def logout(request: Request):
    """End the current session, if any."""
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    if token:
        dao.delete_session(token)
        logger.log_auth_event("logout")

    response = JSONResponse(content={"success": True})
    response.delete_cookie(config.SESSION_COOKIE_NAME, path="/")
    return response
