"""
Catalog Module - Models
========================
Product (base row) + exactly one kind-specific detail row.

Product.kind is the discriminant; the four *Details tables are the
variant payloads, each keyed 1:1 by product_id. They are plain sibling
tables, not an inheritance hierarchy.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Numeric, Float,
    ForeignKey, DateTime, JSON, CheckConstraint, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import money, iso


class ProductKind(str, enum.Enum):
    FLIGHT = "FLIGHT"
    HOTEL = "HOTEL"
    TRANSPORT = "TRANSPORT"
    EXCURSION = "EXCURSION"


# ==========================================
# 📦 Product
# ==========================================

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(12, 2), nullable=False)
    kind = Column(String(16), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Variant payloads (only the one matching `kind` may exist)
    flight = relationship("FlightDetails", uselist=False, back_populates="product", cascade="all, delete-orphan")
    hotel = relationship("HotelDetails", uselist=False, back_populates="product", cascade="all, delete-orphan")
    transport = relationship("TransportDetails", uselist=False, back_populates="product", cascade="all, delete-orphan")
    excursion = relationship("ExcursionDetails", uselist=False, back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_product_price"),
        CheckConstraint(
            "kind IN ('FLIGHT', 'HOTEL', 'TRANSPORT', 'EXCURSION')", name="ck_product_kind",
        ),
        Index("ix_products_created", "created_at"),
    )

    @property
    def product_kind(self) -> ProductKind:
        return ProductKind(self.kind)

    @property
    def details(self):
        """Detail row matching `kind` (None if missing)."""
        return getattr(self, KIND_ATTR[self.product_kind])

    def to_dict(self, include_details: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money(self.price),
            "kind": self.kind,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_details:
            details = self.details
            data["details"] = details.to_dict() if details is not None else None
        return data

    def __repr__(self):
        return f"<Product {self.id} {self.kind} {self.name}>"


class DetailsMixin:
    """Shared by the four detail tables."""

    def to_dict(self) -> dict:
        return {
            col.name: getattr(self, col.name)
            for col in self.__table__.columns
            if col.name != "product_id"
        }


# ==========================================
# ✈️ Flight
# ==========================================

class FlightDetails(DetailsMixin, Base):
    __tablename__ = "flight_details"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    origin = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    departure = Column(String, nullable=False)
    arrival = Column(String, nullable=False)
    duration = Column(String, nullable=False)
    cabin_class = Column(String, nullable=False, default="Economy")
    stops = Column(String, nullable=False, default="Direct")
    airline = Column(String, nullable=True)
    flight_number = Column(String, nullable=True)

    product = relationship("Product", back_populates="flight")


# ==========================================
# 🏨 Hotel
# ==========================================

class HotelDetails(DetailsMixin, Base):
    __tablename__ = "hotel_details"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    location = Column(String, nullable=False)
    amenities = Column(JSON, nullable=False, default=list)
    rating = Column(Float, nullable=True)
    reviews = Column(Integer, nullable=False, default=0)
    check_in = Column(String, nullable=True)
    check_out = Column(String, nullable=True)
    rooms = Column(Integer, nullable=True)
    stars = Column(Integer, nullable=True)

    product = relationship("Product", back_populates="hotel")


# ==========================================
# 🚐 Transport
# ==========================================

class TransportDetails(DetailsMixin, Base):
    __tablename__ = "transport_details"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    vehicle_type = Column(String, nullable=False)
    capacity = Column(Integer, nullable=True)
    pickup_location = Column(String, nullable=True)
    dropoff_location = Column(String, nullable=True)
    duration = Column(String, nullable=True)
    includes = Column(JSON, nullable=False, default=list)

    product = relationship("Product", back_populates="transport")


# ==========================================
# 🧭 Excursion
# ==========================================

class ExcursionDetails(DetailsMixin, Base):
    __tablename__ = "excursion_details"

    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    location = Column(String, nullable=False)
    category = Column(String, nullable=False, default="Excursion")
    duration = Column(String, nullable=True)
    max_group_size = Column(Integer, nullable=True)
    difficulty = Column(String, nullable=True)
    includes = Column(JSON, nullable=False, default=list)
    requirements = Column(JSON, nullable=False, default=list)

    product = relationship("Product", back_populates="excursion")


# Relationship attribute and model per kind
KIND_ATTR = {
    ProductKind.FLIGHT: "flight",
    ProductKind.HOTEL: "hotel",
    ProductKind.TRANSPORT: "transport",
    ProductKind.EXCURSION: "excursion",
}

DETAIL_MODELS = {
    ProductKind.FLIGHT: FlightDetails,
    ProductKind.HOTEL: HotelDetails,
    ProductKind.TRANSPORT: TransportDetails,
    ProductKind.EXCURSION: ExcursionDetails,
}
