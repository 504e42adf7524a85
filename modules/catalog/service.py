"""
Catalog Module - Service Layer
================================
Product CRUD. Reads are open to any authenticated identity; writes
require ADMIN.

A product is a base row plus the single detail row matching its kind.
Read paths always load the matching detail row and treat its absence as
a data-integrity fault, reported to callers as NotFound.
"""

import logging
import math
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from common.helpers import safe_decimal, fits_db_int
from common.exceptions import NotFound, ValidationFailed, ProductInUse
from modules.auth.service import auth_service, Identity
from modules.catalog.models import Product, ProductKind, KIND_ATTR, DETAIL_MODELS

logger = logging.getLogger("travelhub.catalog")


# ==========================================
# Kind-specific fields
# ==========================================
# field -> (type, required, default)

VARIANT_FIELDS: Dict[ProductKind, Dict[str, tuple]] = {
    ProductKind.FLIGHT: {
        "origin": (str, True, None),
        "destination": (str, True, None),
        "departure": (str, True, None),
        "arrival": (str, True, None),
        "duration": (str, True, None),
        "cabin_class": (str, False, "Economy"),
        "stops": (str, False, "Direct"),
        "airline": (str, False, None),
        "flight_number": (str, False, None),
    },
    ProductKind.HOTEL: {
        "location": (str, True, None),
        "amenities": (list, True, None),
        "rating": (float, False, None),
        "reviews": (int, False, 0),
        "check_in": (str, False, None),
        "check_out": (str, False, None),
        "rooms": (int, False, None),
        "stars": (int, False, None),
    },
    ProductKind.TRANSPORT: {
        "vehicle_type": (str, True, None),
        "capacity": (int, False, None),
        "pickup_location": (str, False, None),
        "dropoff_location": (str, False, None),
        "duration": (str, False, None),
        "includes": (list, False, list),
    },
    ProductKind.EXCURSION: {
        "location": (str, True, None),
        "category": (str, False, "Excursion"),
        "duration": (str, False, None),
        "max_group_size": (int, False, None),
        "difficulty": (str, False, None),
        "includes": (list, False, list),
        "requirements": (list, False, list),
    },
}

# Inclusive numeric bounds (None = unbounded)
VARIANT_RANGES = {
    "rating": (0, 5),
    "reviews": (0, None),
    "rooms": (1, None),
    "stars": (1, 5),
    "capacity": (1, None),
    "max_group_size": (1, None),
}

# camelCase and short names sent by the web client
VARIANT_KEY_ALIASES = {
    "from": "origin",
    "to": "destination",
    "class": "cabin_class",
    "flightNumber": "flight_number",
    "checkIn": "check_in",
    "checkOut": "check_out",
    "vehicleType": "vehicle_type",
    "pickupLocation": "pickup_location",
    "dropoffLocation": "dropoff_location",
    "maxGroupSize": "max_group_size",
    "cabinClass": "cabin_class",
}

BASE_FIELDS = ("name", "description", "price")


def normalize_variant_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {VARIANT_KEY_ALIASES.get(k, k): v for k, v in data.items()}


def _coerce(field: str, ftype: type, value):
    """Coerce one variant value to its declared type. Raises ValidationFailed."""
    if value is None:
        return None

    if ftype is str:
        if not isinstance(value, (str, int, float)) or isinstance(value, bool):
            raise ValidationFailed(f"'{field}' must be a string")
        value = str(value).strip()

    elif ftype is list:
        if not isinstance(value, (list, tuple, set)):
            raise ValidationFailed(f"'{field}' must be a list")
        value = list(dict.fromkeys(str(v).strip() for v in value if str(v).strip()))

    elif ftype in (int, float):
        if isinstance(value, bool):
            raise ValidationFailed(f"'{field}' must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationFailed(f"'{field}' must be a number")
        if not math.isfinite(number):
            raise ValidationFailed(f"'{field}' must be a number")
        if ftype is int and not number.is_integer():
            raise ValidationFailed(f"'{field}' must be a whole number")
        value = ftype(number)
        if ftype is int and not fits_db_int(value):
            raise ValidationFailed(f"'{field}' is out of range")
        low, high = VARIANT_RANGES.get(field, (None, None))
        if (low is not None and value < low) or (high is not None and value > high):
            raise ValidationFailed(f"'{field}' is out of range")

    return value


def clean_variant_attrs(kind: ProductKind, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Validate kind-specific attributes.

    Full mode fills defaults and requires every required field; partial
    mode only checks the fields that were supplied.
    """
    fields = VARIANT_FIELDS[kind]
    data = normalize_variant_keys(data or {})

    unknown = sorted(set(data) - set(fields))
    if unknown:
        raise ValidationFailed(f"Unknown field(s) for {kind.value}: {', '.join(unknown)}")

    cleaned = {}
    missing = []
    for field, (ftype, required, default) in fields.items():
        if field not in data:
            if partial:
                continue
            if required:
                missing.append(field)
                continue
            cleaned[field] = default() if callable(default) else default
            continue

        value = _coerce(field, ftype, data[field])
        if required and not value:
            missing.append(field)
            continue
        if value is None and default is not None:
            value = default() if callable(default) else default
        cleaned[field] = value

    if missing:
        raise ValidationFailed(f"Missing required field(s) for {kind.value}: {', '.join(missing)}")
    return cleaned


def clean_price(value) -> Decimal:
    if isinstance(value, bool):
        raise ValidationFailed("price must be a non-negative number")
    price = safe_decimal(value)
    if price is None or not price.is_finite() or price < 0:
        raise ValidationFailed("price must be a non-negative number")
    if price >= Decimal("1e10"):
        raise ValidationFailed("price is too large")
    return price.quantize(Decimal("0.01"))


def parse_kind(value) -> ProductKind:
    try:
        return ProductKind(str(value).strip().upper())
    except ValueError:
        raise ValidationFailed(f"Unknown product type: {value}")


# ==========================================
# Product Service
# ==========================================

class ProductService:

    def _query(self, db: Session):
        return db.query(Product).options(
            selectinload(Product.flight),
            selectinload(Product.hotel),
            selectinload(Product.transport),
            selectinload(Product.excursion),
        )

    def _consistent(self, product: Product) -> bool:
        if product.details is None:
            logger.error("Product %s (%s) has no %s details row", product.id, product.kind, product.kind.lower())
            return False
        return True

    def list_products(self, db: Session, identity: Identity, kind: Optional[ProductKind] = None) -> List[Product]:
        """Newest first. Rows whose detail row is missing are left out (and logged)."""
        q = self._query(db)
        if kind is not None:
            q = q.filter(Product.kind == kind.value)
        products = q.order_by(Product.created_at.desc(), Product.id.desc()).all()
        return [p for p in products if self._consistent(p)]

    def get_product(
        self, db: Session, identity: Identity, product_id: int, kind: Optional[ProductKind] = None,
    ) -> Product:
        """
        Raises:
            NotFound if absent, of another kind (when `kind` is given), or
            missing its detail row
        """
        if not fits_db_int(product_id):
            raise NotFound("Product")
        product = self._query(db).filter(Product.id == product_id).first()
        if not product or (kind is not None and product.kind != kind.value):
            raise NotFound("Product")
        if not self._consistent(product):
            raise NotFound("Product")
        return product

    def create_product(
        self, db: Session, identity: Identity, attrs: Dict[str, Any], variant_attrs: Dict[str, Any],
    ) -> Product:
        """
        Create base row + detail row in one flush (never one without the other).

        attrs: name, description, price, kind
        """
        auth_service.require_admin(identity)

        kind = parse_kind(attrs.get("kind"))
        name = (attrs.get("name") or "").strip()
        if not name:
            raise ValidationFailed("name is required")
        price = clean_price(attrs.get("price"))
        variant = clean_variant_attrs(kind, variant_attrs)

        product = Product(
            name=name,
            description=(attrs.get("description") or "").strip(),
            price=price,
            kind=kind.value,
        )
        setattr(product, KIND_ATTR[kind], DETAIL_MODELS[kind](**variant))
        db.add(product)
        db.flush()
        db.refresh(product)

        logger.info("Product %s created (%s) by user %s", product.id, kind.value, identity.subject_id)
        return product

    def update_product(self, db: Session, identity: Identity, product_id: int, partial: Dict[str, Any]) -> Product:
        """
        Merge only the supplied fields. `details` holds kind-specific fields;
        the kind itself can never change.
        """
        auth_service.require_admin(identity)
        product = self.get_product(db, identity, product_id)

        if partial.get("kind") is not None and parse_kind(partial["kind"]) != product.product_kind:
            raise ValidationFailed("Product type cannot be changed")

        if "name" in partial and partial["name"] is not None:
            name = str(partial["name"]).strip()
            if not name:
                raise ValidationFailed("name cannot be empty")
            product.name = name
        if "description" in partial and partial["description"] is not None:
            product.description = str(partial["description"]).strip()
        if "price" in partial and partial["price"] is not None:
            product.price = clean_price(partial["price"])

        details = partial.get("details") or {}
        if details:
            variant = clean_variant_attrs(product.product_kind, details, partial=True)
            for field, value in variant.items():
                setattr(product.details, field, value)

        db.flush()
        db.refresh(product)
        logger.info("Product %s updated by user %s", product.id, identity.subject_id)
        return product

    def delete_product(self, db: Session, identity: Identity, product_id: int):
        """
        Rejected with ProductInUse while a package bundles the product.
        Cart items pointing at it are removed with it.
        """
        from modules.package.models import PackageProduct
        from modules.cart.models import CartItem

        auth_service.require_admin(identity)
        if not fits_db_int(product_id):
            raise NotFound("Product")
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFound("Product")

        in_packages = db.query(PackageProduct).filter(PackageProduct.product_id == product_id).count()
        if in_packages:
            raise ProductInUse(in_packages)

        removed = db.query(CartItem).filter(CartItem.product_id == product_id).delete(synchronize_session=False)
        db.delete(product)
        db.flush()
        logger.info(
            "Product %s deleted by user %s (%d cart item(s) removed)",
            product_id, identity.subject_id, removed,
        )


# Singleton
product_service = ProductService()
