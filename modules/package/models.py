"""
Package Module - Models
========================
Package: admin-defined bundle of existing products, priced as a unit.
PackageProduct: Package <-> Product junction (M2M).
"""

from sqlalchemy import (
    Column, Integer, String, Text, Numeric,
    ForeignKey, DateTime, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import money, iso


# ==========================================
# 🎁 Package
# ==========================================

class Package(Base):
    __tablename__ = "packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)  # independent of the member prices
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    product_links = relationship(
        "PackageProduct", back_populates="package",
        cascade="all, delete-orphan", order_by="PackageProduct.id",
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_package_price"),
        Index("ix_packages_created", "created_at"),
    )

    @property
    def products(self):
        """Member Product objects, in link order."""
        return [link.product for link in self.product_links]

    @property
    def product_ids(self):
        return [link.product_id for link in self.product_links]

    def to_dict(self, include_products: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "product_ids": self.product_ids,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_products:
            data["products"] = [p.to_dict(include_details=False) for p in self.products]
        return data

    def __repr__(self):
        return f"<Package {self.id} {self.name}>"


# ==========================================
# 🔗 Package ↔ Product (M2M Junction)
# ==========================================

class PackageProduct(Base):
    __tablename__ = "package_products"

    id = Column(Integer, primary_key=True)
    package_id = Column(Integer, ForeignKey("packages.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)

    package = relationship("Package", back_populates="product_links")
    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("package_id", "product_id", name="uq_package_product"),
    )
