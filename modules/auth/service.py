"""
Auth Module - Service Layer
=============================
Registration, credential issue/verification, and role checks.

Every catalog / package / cart operation receives the Identity produced
here as an explicit argument.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.helpers import normalize_email
from common.security import hash_password, verify_password, create_token, decode_token
from common.exceptions import (
    InvalidCredentials, DuplicateIdentity, InvalidToken, IdentityGone, Forbidden,
)
from modules.user.models import User, UserRole

logger = logging.getLogger("travelhub.auth")


@dataclass(frozen=True)
class Identity:
    """Verified caller: subject (user id) and role."""
    subject_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class AuthService:
    """Handles all authentication logic: register, login, token verification."""

    def issue_token(self, user: User) -> str:
        return create_token({"sub": str(user.id), "role": user.role})

    def register(
        self, db: Session, email: str, password: str, name: str,
        role: UserRole = UserRole.CLIENT,
    ) -> Tuple[str, User]:
        """
        Create a new account and return (token, user).

        Raises:
            DuplicateIdentity if the email is already registered
        """
        email = normalize_email(email)

        if db.query(User.id).filter(User.email == email).first():
            raise DuplicateIdentity()

        user = User(
            email=email,
            password_hash=hash_password(password),
            name=name.strip(),
            role=role.value,
        )
        try:
            with db.begin_nested():
                db.add(user)
        except IntegrityError:
            # Race condition: another request registered this email
            raise DuplicateIdentity()

        logger.info("Registered user %s (%s)", user.id, user.role)
        return self.issue_token(user), user

    def issue_credential(self, db: Session, email: str, password: str) -> Tuple[str, User]:
        """
        Verify email + password and return (token, user).

        Raises:
            InvalidCredentials for unknown email or wrong password (same error)
        """
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return self.issue_token(user), user

    def verify_credential(self, db: Session, token: str) -> Identity:
        """
        Validate signature/expiry, then confirm the subject still exists.

        Raises:
            InvalidToken for malformed, expired or forged tokens
            IdentityGone if the account was deleted
        """
        if not token:
            raise InvalidToken("No token provided")

        payload = decode_token(token)
        if not payload:
            raise InvalidToken()

        try:
            subject_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise InvalidToken()

        user = db.query(User).filter(User.id == subject_id).first()
        if not user:
            raise IdentityGone()

        return Identity(subject_id=user.id, role=user.user_role)

    def require_role(self, identity: Identity, role: UserRole):
        if identity.role != role:
            raise Forbidden()

    def require_admin(self, identity: Identity):
        self.require_role(identity, UserRole.ADMIN)


# Singleton
auth_service = AuthService()
