from datetime import datetime, timedelta, timezone
import hashlib
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError, jwt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from billed import models
from billed.config import settings
from billed.db import get_db
from billed.schemas import LoginBody, TokenOut, UserSession

logger = logging.getLogger(__name__)

# =========================
# Security config (envs)
# =========================
SECRET_KEY = settings.JWT_SECRET
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.JWT_EXPIRE_MIN
# the session lives under the "user" key, as the front end expects
SESSION_COOKIE = "user"

router = APIRouter(prefix="/auth", tags=["auth"])

# =========================
# Hashing (matches seeder)
# =========================
def get_password_hash(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()

def verify_password(plain: str, hashed: str) -> bool:
    return hashlib.sha256(plain.encode("utf-8")).hexdigest() == hashed

# =========================
# Token creation
# =========================
def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def create_session_token(email: str, user_type: str, expires_delta: timedelta | None = None) -> str:
    return create_access_token({"sub": email, "type": user_type}, expires_delta)

def decode_session_token(token: str | None) -> Optional[UserSession]:
    """None for a missing, expired, forged or malformed token."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return UserSession(type=payload.get("type"), email=payload.get("sub"))
    except (JWTError, ValidationError):
        return None

# =========================
# Session accessor
# =========================
class CookieSession:
    """Read-only view of the ``user`` cookie of one request."""

    def __init__(self, request: Request):
        self.request = request

    def get(self) -> Optional[UserSession]:
        return decode_session_token(self.request.cookies.get(SESSION_COOKIE))

# =========================
# Dependencies
# =========================
def get_session(request: Request) -> CookieSession:
    return CookieSession(request)

def _require(user_type: str):
    def dependency(session: CookieSession = Depends(get_session)) -> UserSession:
        user = session.get()
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication credentials",
            )
        if user.type != user_type:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"{user_type} access only")
        return user
    return dependency

require_employee = _require("Employee")
require_admin = _require("Admin")

# =========================
# Routes
# =========================
def _authenticate(db: Session, email: str, password: str) -> models.User:
    user = db.query(models.User).filter(models.User.email == email).first()
    if not user or not verify_password(password, user.hashed_password):
        logger.info("Rejected login for %s", email)
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return user

def _open_session(response: Response, user: models.User) -> dict:
    token = create_session_token(user.email, user.role)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return {"access_token": token, "token_type": "bearer"}


@router.post("/login", response_model=TokenOut)
def login(response: Response, form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = _authenticate(db, form_data.username, form_data.password)
    return _open_session(response, user)


@router.post("/login-json", response_model=TokenOut)
def login_json(body: LoginBody, response: Response, db: Session = Depends(get_db)):
    user = _authenticate(db, body.email, body.password)
    return _open_session(response, user)


@router.post("/logout")
def logout():
    response = RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(SESSION_COOKIE)
    return response
