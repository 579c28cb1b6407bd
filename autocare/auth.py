import logging
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security import decode_access_token

logger = logging.getLogger(__name__)

# Missing credentials are handled below so anonymous routes can share the scheme
security = HTTPBearer(auto_error=False)


def get_user_from_token(token: str, db: Session) -> User:
    """Resolve a bearer token to an enabled user or raise 401"""
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=401, detail="Invalid token subject") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"⚠️ Token references unknown user {user_id}")
        raise HTTPException(status_code=401, detail="User not found")
    if not user.enabled:
        logger.warning(f"🚫 Disabled user {user_id} attempted to authenticate")
        raise HTTPException(status_code=401, detail="Account is disabled")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return get_user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user but anonymous callers get None instead of 401"""
    if credentials is None:
        return None
    return get_user_from_token(credentials.credentials, db)
