from jose import JWTError, jwt
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from campusmart.core.config import settings
from campusmart.core.errors import Unauthenticated
from campusmart.db.session import get_db
from campusmart.models.user import User

security = HTTPBearer(auto_error=False)

def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.ALGORITHM)
    return encoded_jwt

async def get_user_from_token(db, token: Optional[str]) -> Optional[User]:
    """Resolve a bearer token to the session's user, or None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub")
    if user_id is None:
        return None

    user = await db.users.find_one({"id": user_id})
    if user is None:
        return None

    return User(**user)

async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db=Depends(get_db)
):
    if credentials is None:
        return None
    return await get_user_from_token(db, credentials.credentials)

async def get_current_user(current_user: Optional[User] = Depends(get_current_user_optional)):
    if current_user is None:
        raise Unauthenticated("Invalid authentication credentials")
    return current_user
