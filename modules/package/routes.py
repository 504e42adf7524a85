"""
Package Module - Routes
========================
  GET    /packages           list with member products
  GET    /packages/{id}
  POST   /packages           ADMIN
  PUT    /packages/{id}      ADMIN, product_ids replaces membership
  DELETE /packages/{id}      ADMIN
"""

from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.schemas import ApiModel
from modules.auth.deps import get_current_identity, require_admin
from modules.auth.service import Identity
from modules.package.service import package_service

router = APIRouter(prefix="/packages", tags=["packages"])


# ==========================================
# Schemas
# ==========================================

class PackageCreateRequest(ApiModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    product_ids: List[int] = Field(..., min_length=1)


class PackageUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    product_ids: Optional[List[int]] = None


# ==========================================
# 🎁 Packages
# ==========================================

@router.get("")
async def list_packages(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    return [p.to_dict() for p in package_service.list_packages(db, identity)]


@router.get("/{package_id}")
async def get_package(
    package_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return package_service.get_package(db, identity, package_id).to_dict()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_package(
    body: PackageCreateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    package = package_service.create_package(
        db, identity, body.name, body.description, body.price, body.product_ids,
    )
    db.commit()
    return package.to_dict()


@router.put("/{package_id}")
async def update_package(
    package_id: int,
    body: PackageUpdateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    package = package_service.update_package(db, identity, package_id, body.model_dump(exclude_unset=True))
    db.commit()
    return package.to_dict()


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_package(
    package_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    package_service.delete_package(db, identity, package_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
