"""Bearer-token authentication (verification only; tokens are issued elsewhere)."""
import logging
import time
from uuid import UUID

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .config import settings
from .database import get_db
from .models import User

logger = logging.getLogger(__name__)

# Bearer token scheme
security = HTTPBearer()


def _unauthorized(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    """Decode JWT token with leeway-aware expiry check."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        raise _unauthorized()

    exp = payload.get("exp")
    try:
        exp_int = int(exp)
    except (TypeError, ValueError):
        raise _unauthorized()
    if int(time.time()) > exp_int + int(settings.JWT_LEEWAY_SECONDS):
        raise _unauthorized("Token expired")
    return payload


def _parse_token_subject(payload: dict) -> UUID:
    """Parse and validate JWT subject as UUID."""
    sub = payload.get("sub")
    if not sub:
        raise _unauthorized()
    try:
        return UUID(str(sub))
    except ValueError:
        raise _unauthorized()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user."""
    payload = decode_token(credentials.credentials)
    user_id = _parse_token_subject(payload)
    user = db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
    if user is None:
        raise _unauthorized()
    return user


class RoleChecker:
    """Dependency that restricts an endpoint to the given roles."""

    def __init__(self, *roles: str):
        self.roles = set(roles)

    def __call__(self, current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in self.roles:
            logger.warning(f"Access denied for {current_user.id} ({current_user.role}), requires {sorted(self.roles)}")
            raise HTTPException(status_code=403, detail="Access denied")
        return current_user


require_manager = RoleChecker("admin", "manager")
