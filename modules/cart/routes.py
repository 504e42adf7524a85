"""
Cart Routes
============
The cart is always the caller's own (resolved from the token).

  GET    /cart               get or create
  DELETE /cart               clear all items
  POST   /cart/items         add product or package (merges quantity)
  PUT    /cart/items/{id}    set quantity
  DELETE /cart/items/{id}    remove item
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import DB_INT_MAX
from common.schemas import ApiModel
from modules.auth.deps import get_current_identity
from modules.auth.service import Identity
from modules.cart.service import cart_service

router = APIRouter(prefix="/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddItemRequest(ApiModel):
    product_id: Optional[int] = None
    package_id: Optional[int] = None
    quantity: int = Field(1, ge=1, le=DB_INT_MAX)


class UpdateItemRequest(ApiModel):
    quantity: int = Field(..., ge=1, le=DB_INT_MAX)


# ==========================================
# 🛒 View / Clear Cart
# ==========================================

@router.get("")
async def view_cart(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    cart = cart_service.get_cart(db, identity)
    db.commit()
    return cart.to_dict()


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(db: Session = Depends(get_db), identity: Identity = Depends(get_current_identity)):
    cart_service.clear_cart(db, identity)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==========================================
# ➕➖ Items
# ==========================================

@router.post("/items", status_code=status.HTTP_201_CREATED)
async def add_item(
    body: AddItemRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    item = cart_service.add_item(
        db, identity,
        product_id=body.product_id, package_id=body.package_id, quantity=body.quantity,
    )
    db.commit()
    return item.to_dict()


@router.put("/items/{item_id}")
async def update_item(
    item_id: int,
    body: UpdateItemRequest,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    item = cart_service.update_item_quantity(db, identity, item_id, body.quantity)
    db.commit()
    return item.to_dict()


@router.delete("/items/{item_id}")
async def remove_item(
    item_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    cart_service.remove_item(db, identity, item_id)
    db.commit()
    return {"success": True, "id": item_id}
