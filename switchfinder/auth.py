"""
Simple admin authentication - no user database.
One admin account from the environment, JWT bearer tokens for the catalog endpoints.
"""

import hmac
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

from switchfinder import config_loader  # noqa: F401  (loads .env before the reads below)

logger = logging.getLogger(__name__)

# Admin credentials
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "switchfinder-dev-secret-key")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24

security = HTTPBearer(auto_error=False)

# Set AUTH_DISABLED=true in env to skip auth for local dev
AUTH_DISABLED = os.getenv("AUTH_DISABLED", "false").lower() in ("true", "1", "yes")


class LoginRequest(BaseModel):
    username: str = ADMIN_USERNAME
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    role: str = "admin"


def create_access_token(username: str, role: str = "admin", expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token with role claim."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode = {
        "sub": username,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str) -> Optional[dict]:
    """Verify a JWT token and return {username, role} if valid."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
    username = payload.get("sub")
    if username is None:
        return None
    return {"username": username, "role": payload.get("role", "admin")}


def authenticate_user(username: str, password: str) -> Optional[dict]:
    """Check admin credentials. Returns user info dict or None."""
    if not ADMIN_PASSWORD:
        logger.warning("[AUTH] ADMIN_PASSWORD is not set; admin login is disabled")
        return None
    if username == ADMIN_USERNAME and hmac.compare_digest(password, ADMIN_PASSWORD):
        return {"username": username, "role": "admin"}
    return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Dependency for admin-only endpoints; returns the username."""
    if AUTH_DISABLED:
        return "dev"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_info = verify_token(credentials.credentials)
    if user_info is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_info["username"]


def login(request: LoginRequest) -> TokenResponse:
    """Authenticate the admin and return an access token."""
    user = authenticate_user(request.username, request.password)
    if not user:
        logger.info(f"[AUTH] Failed login for '{request.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    access_token = create_access_token(user["username"], role=user["role"])
    return TokenResponse(
        access_token=access_token,
        expires_in=ACCESS_TOKEN_EXPIRE_HOURS * 3600,
        role=user["role"],
    )
