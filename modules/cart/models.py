"""
Cart Module - Models
=====================
One cart per user; each item points at exactly one product OR package.

NULLs are distinct in unique constraints, so (cart_id, product_id) only
binds product rows and (cart_id, package_id) only binds package rows.
"""

from sqlalchemy import (
    Column, Integer, ForeignKey, DateTime,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import iso


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", foreign_keys=[user_id])
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.id")

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "item_count": self.item_count,
            "created_at": iso(self.created_at),
        }


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True)
    package_id = Column(Integer, ForeignKey("packages.id", ondelete="CASCADE"), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")
    package = relationship("Package")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_product"),
        UniqueConstraint("cart_id", "package_id", name="uq_cart_package"),
        CheckConstraint("quantity >= 1", name="ck_cart_qty"),
        CheckConstraint(
            "(product_id IS NULL) <> (package_id IS NULL)", name="ck_cart_item_target",
        ),
    )

    @property
    def target_kind(self) -> str:
        return "product" if self.product_id is not None else "package"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cart_id": self.cart_id,
            "product_id": self.product_id,
            "package_id": self.package_id,
            "quantity": self.quantity,
            "product": self.product.to_dict() if self.product is not None else None,
            "package": self.package.to_dict(include_products=False) if self.package is not None else None,
            "created_at": iso(self.created_at),
        }
