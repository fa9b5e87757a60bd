# server/api/auth.py

from datetime import datetime
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError as BodyValidationError
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from sqlalchemy.orm import Session

from core.accounts import authenticate_user, register_user
from core.config import (
    COOKIE_SECURE,
    LOGIN_REDIRECT_URL,
    SESSION_COOKIE_NAME,
    SESSION_SECRET,
)
from core.errors import ValidationError
from core.sessions import SessionStore, get_session_store
from database import get_db


ALGORITHM = "HS256"

router = APIRouter(prefix="/api")


class RegisterRequest(BaseModel):
    user_id: str | None = None
    user_name: str | None = None
    password: str | None = None
    email: str | None = None
    phone: str | None = None


class LoginRequest(BaseModel):
    user_name: str | None = None
    login_input: str | None = None
    identifier: str | None = None
    password: str | None = None

    def login_id(self) -> str:
        return (self.user_name or self.login_input or self.identifier or "").strip()


# -------------------------------
# Request bodies
# -------------------------------

INVALID_BODY = "Invalid request body."
FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def read_fields(request: Request) -> dict:
    """
    Reads a JSON object or a form-encoded body into a plain dict.
    Anything else is rejected as a malformed body.
    """
    content_type = request.headers.get("content-type", "")
    try:
        if content_type.startswith(FORM_TYPES):
            form = await request.form()
            return {k: v for k, v in form.items() if isinstance(v, str)}
        data = await request.json()
    except (ValueError, MultiPartException, StarletteHTTPException):
        raise ValidationError(INVALID_BODY)
    if not isinstance(data, dict):
        raise ValidationError(INVALID_BODY)
    return data


def _parse(model, fields: dict):
    try:
        return model.model_validate(fields)
    except BodyValidationError:
        raise ValidationError(INVALID_BODY)


async def register_body(request: Request) -> RegisterRequest:
    return _parse(RegisterRequest, await read_fields(request))


async def login_body(request: Request) -> LoginRequest:
    return _parse(LoginRequest, await read_fields(request))


# -------------------------------
# Session cookie
# -------------------------------

def create_session_cookie(token: str, expires_at: datetime) -> str:
    return jwt.encode({"sid": token, "exp": expires_at}, SESSION_SECRET, algorithm=ALGORITHM)


def read_session_token(cookie: str | None) -> str | None:
    """Returns the session id carried by a cookie, or None if it is absent, forged or expired."""
    if not cookie:
        return None
    try:
        payload = jwt.decode(cookie, SESSION_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None
    sid = payload.get("sid")
    return sid if isinstance(sid, str) and sid else None


def _set_session_cookie(response: Response, value: str, max_age: int):
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=value,
        max_age=max_age,
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )


# -------------------------------
# Endpoints
# -------------------------------

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest = Depends(register_body), db: Session = Depends(get_db)):
    register_user(db, req.user_id, req.user_name, req.password, req.email, req.phone)
    return {"success": True, "message": "Registration successful! Redirecting to login..."}


@router.post("/login")
def login(
    request: Request,
    response: Response,
    req: LoginRequest = Depends(login_body),
    db: Session = Depends(get_db),
    sessions: SessionStore = Depends(get_session_store),
):
    user = authenticate_user(db, req.login_id(), req.password)

    sessions.destroy(read_session_token(request.cookies.get(SESSION_COOKIE_NAME)))
    token = sessions.new_token()
    data = sessions.set(token, user.user_id, user.user_name, logged_in=True)
    _set_session_cookie(
        response,
        create_session_cookie(token, data.expires_at),
        max_age=int(sessions.ttl.total_seconds()),
    )

    return {
        "success": True,
        "message": f"Welcome back, {user.user_name}!",
        "redirect": LOGIN_REDIRECT_URL,
    }


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
):
    sessions.destroy(read_session_token(request.cookies.get(SESSION_COOKIE_NAME)))
    response.delete_cookie(SESSION_COOKIE_NAME, httponly=True, samesite="lax", secure=COOKIE_SECURE)
    return {"success": True, "message": "Logged out successfully."}


@router.get("/me")
def read_current_session(request: Request, sessions: SessionStore = Depends(get_session_store)):
    data = sessions.get(read_session_token(request.cookies.get(SESSION_COOKIE_NAME)))
    if data is None or not data.logged_in:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": "Not logged in."}
        )
    return {
        "success": True,
        "user_id": data.user_id,
        "user_name": data.user_name,
        "redirect": LOGIN_REDIRECT_URL,
    }
