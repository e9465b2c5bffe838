import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.hash import bcrypt
from pydantic import ValidationError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .config import Settings

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def verify_password(plain_password, hashed_password):
    return bcrypt.verify(plain_password, hashed_password)


def authenticate_user(db: Session, username: str, password: str):
    user = crud.get_user_by_username(db, username)
    if not user:
        return False
    if not verify_password(password, user.hashed_password):
        return False
    return user


def create_access_token(user: models.User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a session token carrying the account's id, username, role and permissions.

    The claims are trusted until ``exp``; later changes to the stored account are not
    seen by holders of an older token.
    """
    to_encode = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role,
        "permissions": user.permissions,
    }
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str, settings: Settings) -> schemas.TokenClaims:
    payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    return schemas.TokenClaims(**payload)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_claims(token: str = Depends(oauth2_scheme), settings: Settings = Depends(get_settings)) -> schemas.TokenClaims:
    invalid_token = HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Invalid token",
    )
    try:
        return decode_access_token(token, settings)
    except (JWTError, ValidationError):
        raise invalid_token


def require_admin(claims: schemas.TokenClaims = Depends(get_token_claims)) -> schemas.TokenClaims:
    if claims.role != models.ROLE_ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return claims


def require_write_permission(claims: schemas.TokenClaims = Depends(get_token_claims)) -> schemas.TokenClaims:
    if claims.permissions != models.PERMISSION_WRITE:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Write permission required")
    return claims
