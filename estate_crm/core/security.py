"""
API Security module.
JWT issuing and decoding, password hashing.
"""
from datetime import datetime, UTC, timedelta
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from passlib.context import CryptContext
from starlette import status

from estate_crm.core.config import settings
from estate_crm.core.roles import Claims

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# HTTP Bearer authentication scheme
security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed one."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate a hash for a password."""
    return pwd_context.hash(password)


def create_access_token(user_id: int, role_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT carrying the user id as ``sub`` and the role id."""
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "role_id": role_id, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_claims(token: str) -> Claims:
    """Decode a bearer token into Claims. Raises JWTError or ValueError when invalid."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    user_id = payload.get("sub")
    role_id = payload.get("role_id")
    if user_id is None or role_id is None:
        raise ValueError("token is missing sub or role_id")
    return Claims(user_id=int(user_id), role_id=int(role_id))


async def get_current_claims(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> Claims:
    """Dependency that resolves the authenticated actor from the bearer token."""
    try:
        return decode_claims(credentials.credentials)
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
