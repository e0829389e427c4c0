# assessment_engine/core/security.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from assessment_engine.core.config import settings

ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"
ROLE_PARENT = "parent"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Verified caller identity attached to every lifecycle call."""
    user_id: int
    role: str

    @property
    def is_teacher(self) -> bool:
        return self.role == ROLE_TEACHER


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_principal(token: str) -> Principal:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise credentials_exception

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or not role:
        raise credentials_exception
    try:
        return Principal(user_id=int(user_id), role=str(role))
    except (TypeError, ValueError):
        raise credentials_exception


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_principal(credentials.credentials)


def get_current_teacher(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != ROLE_TEACHER:
        raise HTTPException(status_code=403, detail="Teacher role required")
    return principal


def get_current_student(principal: Principal = Depends(get_current_principal)) -> Principal:
    if principal.role != ROLE_STUDENT:
        raise HTTPException(status_code=403, detail="Student role required")
    return principal
