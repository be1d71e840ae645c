"""
Newsdesk Backend — Auth Service
=================================

What:  User registration, login and admin account creation.
How:   Passwords are hashed with passlib, sessions are stateless JWTs
       (see newsdesk.security). Emails are compared lower-cased.
Who:   /api/auth routes, the startup admin bootstrap and `newsdesk create-admin`.

Responses:
    register / login → {"token": "<jwt>", "user": {id, name, email, role}}
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from newsdesk.database import flush_or_conflict
from newsdesk.exceptions import AuthenticationError, ConflictError
from newsdesk.models import ROLE_ADMIN, ROLE_USER, User
from newsdesk.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def public_user(user: User) -> Dict[str, Any]:
    return {"id": str(user.id), "name": user.name, "email": user.email, "role": user.role}


def token_response(user: User) -> Dict[str, Any]:
    return {
        "token": create_access_token(str(user.id), user.role),
        "user": public_user(user),
    }


class AuthService:
    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> Optional[User]:
        return await db.get(User, user_id)

    async def create_user(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        role: str = ROLE_USER,
        phone: Optional[str] = None,
    ) -> User:
        """Insert a user. Raises ConflictError if the email is taken."""
        if await self.find_by_email(db, email) is not None:
            raise ConflictError(message="User already exists", field="email")

        user = User(
            name=name,
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=role,
            phone=phone,
        )
        db.add(user)
        await flush_or_conflict(db, "email")
        logger.info("User created: %s (role=%s)", user.id, role)
        return user

    async def register(self, db: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
        user = await self.create_user(
            db,
            name=data["name"],
            email=data["email"],
            password=data["password"],
            phone=data.get("phone"),
        )
        return token_response(user)

    async def register_admin(self, db: AsyncSession, data: Dict[str, Any]) -> Dict[str, Any]:
        user = await self.create_user(
            db,
            name=data["name"],
            email=data["email"],
            password=data["password"],
            role=ROLE_ADMIN,
            phone=data.get("phone"),
        )
        return {"message": "Admin user created", "user": public_user(user)}

    async def login(self, db: AsyncSession, email: str, password: str) -> Dict[str, Any]:
        user = await self.find_by_email(db, email)
        # Same error for unknown email and wrong password
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email)
            raise AuthenticationError(message="Invalid credentials")
        return token_response(user)

    async def ensure_admin(
        self, db: AsyncSession, email: str, password: str, name: str
    ) -> bool:
        """
        Create the configured admin account if it does not exist yet.

        Returns:
            True if an account was created, False if one already existed.
        """
        if await self.find_by_email(db, email) is not None:
            logger.info("Admin account %s already exists", email)
            return False
        await self.create_user(db, name=name, email=email, password=password, role=ROLE_ADMIN)
        return True


auth_service = AuthService()
