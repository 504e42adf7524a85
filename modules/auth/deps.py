"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().
"""

from typing import Optional

from fastapi import Request, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.service import auth_service, Identity


def extract_token(request: Request) -> Optional[str]:
    """Bearer token from the Authorization header, auth_token cookie as fallback."""
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get("auth_token")


def get_current_identity(request: Request, db: Session = Depends(get_db)) -> Identity:
    """
    Resolve the caller's Identity. Raises InvalidToken / IdentityGone.
    The verified subject id is stored on request.state for the access log.
    """
    identity = auth_service.verify_credential(db, extract_token(request))
    request.state.subject_id = identity.subject_id
    return identity


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    """Only allow ADMIN identities. Raises Forbidden otherwise."""
    auth_service.require_admin(identity)
    return identity
