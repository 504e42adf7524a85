"""
Auth Module - Routes
=====================
Register, login, current user, logout.

Tokens are returned in the JSON body (for the Authorization: Bearer header)
and also set as the auth_token cookie.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import PASSWORD_MIN_LENGTH
from common.schemas import ApiModel
from common.security import get_cookie_kwargs
from modules.auth.service import auth_service, Identity
from modules.auth.deps import get_current_identity
from modules.user.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


# ==========================================
# Schemas
# ==========================================

class _EmailBody(ApiModel):
    email: EmailStr


class RegisterRequest(_EmailBody):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)
    name: str = Field(..., min_length=1)


class LoginRequest(_EmailBody):
    password: str = Field(..., min_length=1)


def _auth_response(token: str, user: User, status_code: int = 200) -> JSONResponse:
    response = JSONResponse({"token": token, "user": user.to_public()}, status_code=status_code)
    response.set_cookie("auth_token", token, **get_cookie_kwargs())
    return response


# ==========================================
# 📝 Register
# ==========================================
# register / login are plain def: bcrypt runs in the threadpool

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    token, user = auth_service.register(db, body.email, body.password, body.name)
    db.commit()
    return _auth_response(token, user, status_code=status.HTTP_201_CREATED)


# ==========================================
# 🔑 Login
# ==========================================

@router.post("/login")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    token, user = auth_service.issue_credential(db, body.email, body.password)
    return _auth_response(token, user)


# ==========================================
# 👤 Current user
# ==========================================

@router.get("/me")
async def me(identity: Identity = Depends(get_current_identity), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == identity.subject_id).first()
    return user.to_public()


@router.post("/logout")
async def logout():
    """Clear the auth cookie. Outstanding tokens stay valid until they expire."""
    response = JSONResponse({"success": True})
    response.delete_cookie("auth_token")
    return response
