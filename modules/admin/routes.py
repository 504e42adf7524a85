"""
Admin Module - Routes
======================
Dashboard statistics (ADMIN only).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.auth.service import Identity
from modules.admin.dashboard_service import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["admin"])


@router.get("/stats")
async def dashboard_stats(db: Session = Depends(get_db), identity: Identity = Depends(require_admin)):
    return dashboard_service.get_overview_stats(db, identity)
