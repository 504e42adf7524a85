"""
Package Module - Service Layer
================================
Bundles of existing products. Reads are open to any authenticated
identity; create / update / delete require ADMIN.
"""

import logging
from typing import Any, Dict, List, Sequence

from sqlalchemy.orm import Session, selectinload

from common.helpers import unique_ids, fits_db_int
from common.exceptions import NotFound, InvalidReference, ValidationFailed
from modules.auth.service import auth_service, Identity
from modules.catalog.models import Product
from modules.catalog.service import clean_price
from modules.cart.models import CartItem
from modules.package.models import Package, PackageProduct

logger = logging.getLogger("travelhub.package")


class PackageService:

    def _query(self, db: Session):
        return db.query(Package).options(
            selectinload(Package.product_links).selectinload(PackageProduct.product),
        )

    def _resolve_products(self, db: Session, product_ids: Sequence[int]) -> List[int]:
        """
        Check every id against the catalog in one query.
        Returns the de-duplicated ids. Raises InvalidReference on any miss.
        """
        ids = unique_ids(product_ids or [])
        if not ids:
            raise ValidationFailed("A package needs at least one product")

        storable = [i for i in ids if fits_db_int(i)]
        found = db.query(Product.id).filter(Product.id.in_(storable)).count() if storable else 0
        if found != len(ids):
            raise InvalidReference(f"{len(ids) - found} of {len(ids)} products not found")
        return ids

    def _clean_name(self, value) -> str:
        name = str(value or "").strip()
        if not name:
            raise ValidationFailed("name is required")
        return name

    def list_packages(self, db: Session, identity: Identity) -> List[Package]:
        return self._query(db).order_by(Package.created_at.desc(), Package.id.desc()).all()

    def get_package(self, db: Session, identity: Identity, package_id: int) -> Package:
        if not fits_db_int(package_id):
            raise NotFound("Package")
        package = self._query(db).filter(Package.id == package_id).first()
        if not package:
            raise NotFound("Package")
        return package

    def create_package(
        self, db: Session, identity: Identity,
        name: str, description: str, price, product_ids: Sequence[int],
    ) -> Package:
        """All product ids are verified before anything is written."""
        auth_service.require_admin(identity)

        name = self._clean_name(name)
        price = clean_price(price)
        ids = self._resolve_products(db, product_ids)

        package = Package(
            name=name,
            description=(description or "").strip(),
            price=price,
            product_links=[PackageProduct(product_id=pid) for pid in ids],
        )
        db.add(package)
        db.flush()

        logger.info("Package %s created with %d product(s) by user %s", package.id, len(ids), identity.subject_id)
        return self.get_package(db, identity, package.id)

    def update_package(self, db: Session, identity: Identity, package_id: int, partial: Dict[str, Any]) -> Package:
        """
        Merge supplied fields. `product_ids`, when given, replaces the whole
        membership (not additive).
        """
        auth_service.require_admin(identity)
        package = self.get_package(db, identity, package_id)

        # Validate everything before touching the row
        changes = {}
        if partial.get("name") is not None:
            changes["name"] = self._clean_name(partial["name"])
        if partial.get("description") is not None:
            changes["description"] = str(partial["description"]).strip()
        if partial.get("price") is not None:
            changes["price"] = clean_price(partial["price"])
        new_ids = None
        if partial.get("product_ids") is not None:
            new_ids = self._resolve_products(db, partial["product_ids"])

        for field, value in changes.items():
            setattr(package, field, value)

        if new_ids is not None:
            wanted = set(new_ids)
            current = {link.product_id: link for link in package.product_links}
            for pid, link in current.items():
                if pid not in wanted:
                    package.product_links.remove(link)
            for pid in new_ids:
                if pid not in current:
                    package.product_links.append(PackageProduct(product_id=pid))

        db.flush()
        logger.info("Package %s updated by user %s", package.id, identity.subject_id)

        db.expire(package)
        return self.get_package(db, identity, package.id)

    def delete_package(self, db: Session, identity: Identity, package_id: int):
        """Removes the package, its links and cart items. Member products stay."""
        auth_service.require_admin(identity)
        if not fits_db_int(package_id):
            raise NotFound("Package")
        package = db.query(Package).filter(Package.id == package_id).first()
        if not package:
            raise NotFound("Package")

        removed = db.query(CartItem).filter(CartItem.package_id == package_id).delete(synchronize_session=False)
        db.delete(package)
        db.flush()
        logger.info(
            "Package %s deleted by user %s (%d cart item(s) removed)",
            package_id, identity.subject_id, removed,
        )


# Singleton
package_service = PackageService()
