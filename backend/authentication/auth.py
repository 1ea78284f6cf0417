from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.config import settings
from models.exceptions import (
    AuthenticationException,
    InactiveUserException,
    InsufficientPermissionsException,
)
from models.notification_types import UserRole
from repositories.database import get_db
from repositories.user_repository import UserRepository

# Tokens are issued by the portal's login service; this API only verifies them.
bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> db_models.User:
    """
    Get the current authenticated user from the bearer JWT.

    Raises:
        AuthenticationException: If the token is missing, invalid, expired
            or does not match a user.
    """
    if credentials is None:
        raise AuthenticationException("Not authenticated")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.exceptions.ExpiredSignatureError:
        raise AuthenticationException("Session expired. Please log in again.")
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    email_value = payload.get("sub")
    if email_value is None:
        raise AuthenticationException("Could not validate credentials")

    user = UserRepository(db).get_by_email(str(email_value))
    if user is None:
        raise AuthenticationException("Could not validate credentials")
    return user


async def get_current_active_user(
    current_user: db_models.User = Depends(get_current_user),
) -> db_models.User:
    """
    Raises:
        InactiveUserException: If the user account has been deactivated.
    """
    if not bool(current_user.is_active):
        raise InactiveUserException("Account has been deactivated")
    return current_user


async def get_staff_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require monitor or admin role.

    Raises:
        InsufficientPermissionsException: If the user is a family member.
    """
    if not current_user.role.is_staff:
        raise InsufficientPermissionsException("Monitor or admin permissions required")
    return current_user


async def get_admin_user(
    current_user: db_models.User = Depends(get_current_active_user),
) -> db_models.User:
    """
    Require admin role.

    Raises:
        InsufficientPermissionsException: If the user is not an admin.
    """
    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsException("Not enough permissions")
    return current_user
