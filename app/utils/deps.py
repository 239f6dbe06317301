import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from app.core.constants import RoleEnum
from app.core.database import SessionLocal
from app.core.exceptions import Forbidden, Unauthorized
from app.core.security import decode_access_token
from app.crud.user import user as user_crud
from app.models.user import User

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_transactional_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

def _user_from_token(db: Session, token: str) -> User:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise Unauthorized("Invalid or expired token")

    subject = payload.get("sub")
    if subject is None:
        raise Unauthorized("Invalid token")
    try:
        user_id = UUID(str(subject))
    except ValueError:
        raise Unauthorized("Invalid token subject")

    user = user_crud.get(db, id=user_id)
    if not user:
        raise Unauthorized("User not found")
    return user

def get_current_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> User:
    if credentials is None:
        raise Unauthorized("Not authenticated")
    return _user_from_token(db, credentials.credentials)

def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer)
) -> Optional[User]:
    """Resolve the caller when a valid token is sent; anonymous otherwise."""
    if credentials is None:
        return None
    try:
        return _user_from_token(db, credentials.credentials)
    except Unauthorized as exc:
        logger.info(f"Ignoring invalid bearer token on public route: {exc.detail}")
        return None

def require_roles(*roles: RoleEnum):
    """Dependency that checks the current user holds one of ``roles``."""
    def _verify_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden("You do not have permission to perform this action.")
        return current_user
    return _verify_role
