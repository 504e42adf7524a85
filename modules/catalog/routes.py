"""
Catalog Module - Routes
========================
Generic product API plus one view per product kind.

  GET    /products[?product_type=]   list (newest first)
  GET    /products/{id}
  POST   /products                   ADMIN
  PUT    /products/{id}              ADMIN
  DELETE /products/{id}              ADMIN

  GET  /flights | /hotels | /transport | /experiences
  GET  /<kind>/{id}
  POST /<kind>                       ADMIN, flat body (base + kind fields)
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import AliasChoices, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.schemas import ApiModel
from modules.auth.deps import get_current_identity, require_admin
from modules.auth.service import Identity
from modules.catalog.models import ProductKind
from modules.catalog.service import product_service, parse_kind, BASE_FIELDS

router = APIRouter(tags=["catalog"])


# ==========================================
# Schemas
# ==========================================

class ProductCreateRequest(ApiModel):
    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)
    kind: str = Field(..., validation_alias=AliasChoices("kind", "type", "productType"))
    details: Dict[str, Any] = Field(default_factory=dict)


class ProductUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    kind: Optional[str] = Field(None, validation_alias=AliasChoices("kind", "type", "productType"))
    details: Optional[Dict[str, Any]] = None


class KindProductRequest(ApiModel):
    """Base fields plus the kind's own fields at the top level."""
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., min_length=1)
    description: str = ""
    price: Decimal = Field(..., ge=0)


# ==========================================
# 📦 Products
# ==========================================

@router.get("/products")
async def list_products(
    product_type: Optional[str] = None,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    kind = parse_kind(product_type) if product_type else None
    products = product_service.list_products(db, identity, kind)
    return {"data": [p.to_dict() for p in products], "total": len(products)}


@router.get("/products/{product_id}")
async def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return product_service.get_product(db, identity, product_id).to_dict()


@router.post("/products", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    product = product_service.create_product(
        db, identity,
        {"name": body.name, "description": body.description, "price": body.price, "kind": body.kind},
        body.details,
    )
    db.commit()
    return product.to_dict()


@router.put("/products/{product_id}")
async def update_product(
    product_id: int,
    body: ProductUpdateRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    product = product_service.update_product(db, identity, product_id, body.model_dump(exclude_unset=True))
    db.commit()
    return product.to_dict()


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_admin),
):
    product_service.delete_product(db, identity, product_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# ✈️🏨🚐🧭 Kind views
# ==========================================

KIND_PATHS = {
    ProductKind.FLIGHT: "/flights",
    ProductKind.HOTEL: "/hotels",
    ProductKind.TRANSPORT: "/transport",
    ProductKind.EXCURSION: "/experiences",
}


def _register_kind_routes(kind: ProductKind, path: str):

    async def list_kind(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
        return [p.to_dict() for p in product_service.list_products(db, identity, kind)]

    async def get_kind(
        product_id: int,
        db: Session = Depends(get_db),
        identity: Identity = Depends(get_current_identity),
    ):
        return product_service.get_product(db, identity, product_id, kind).to_dict()

    async def create_kind(
        body: KindProductRequest,
        db: Session = Depends(get_db),
        identity: Identity = Depends(require_admin),
    ):
        variant = {k: v for k, v in (body.model_extra or {}).items() if k not in BASE_FIELDS}
        product = product_service.create_product(
            db, identity,
            {"name": body.name, "description": body.description, "price": body.price, "kind": kind.value},
            variant,
        )
        db.commit()
        return product.to_dict()

    name = kind.value.lower()
    router.add_api_route(path, list_kind, methods=["GET"], name=f"list_{name}")
    router.add_api_route(f"{path}/{{product_id}}", get_kind, methods=["GET"], name=f"get_{name}")
    router.add_api_route(
        path, create_kind, methods=["POST"], name=f"create_{name}",
        status_code=status.HTTP_201_CREATED,
    )


for _kind, _path in KIND_PATHS.items():
    _register_kind_routes(_kind, _path)
