"""
User Module - User Model
=========================
Email/password identity with a single role (ADMIN or CLIENT).
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Index
from sqlalchemy.sql import func
from config.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # === Identity ===
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)  # bcrypt (includes salt)
    name = Column(String, nullable=False)
    role = Column(String(16), default=UserRole.CLIENT.value, server_default=UserRole.CLIENT.value, nullable=False)

    # === Audit ===
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_users_created", "created_at"),
    )

    @property
    def user_role(self) -> UserRole:
        return UserRole(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def to_public(self) -> dict:
        """Safe representation (no password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
        }

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
