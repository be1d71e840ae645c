"""
Newsdesk Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table (authors and administrators).
Who:   AuthService for register/login, Blog.author for populated authors.

Roles:
    'user'  — default for self-registration
    'admin' — created by the startup bootstrap, the CLI, or another admin
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from newsdesk.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Stored lower-cased; uniqueness is enforced by the index
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # passlib hash string, never the plain password
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_summary(self) -> Dict[str, Any]:
        """Public author representation embedded in blog responses."""
        return {"id": str(self.id), "name": self.name, "email": self.email}

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
