"""
Newsdesk Backend — Password Hashing & Access Tokens
=====================================================

What:  Password hashing (passlib) and JWT issue/verify (python-jose).
Who:   AuthService (register, login, admin bootstrap) and the auth
       dependencies that resolve the bearer token of a request.

Token claims:
    sub   user id (UUID string)
    role  'user' | 'admin'
    iat   issued at
    exp   issued at + JWT_EXPIRE_MINUTES
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from newsdesk.config import settings

# PBKDF2-SHA256 needs no native extension, unlike bcrypt
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """False for a wrong password and for a hash passlib cannot identify."""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def create_access_token(
    subject: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    claims = {"sub": subject, "role": role, "iat": now, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verified claims, or None if the token is malformed, forged or expired."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
