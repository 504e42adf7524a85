"""
Cart Module - Service Layer
==============================
Per-user staging list: get/create, add (merge), set quantity, remove, clear.

The cart is always found through identity.subject_id, never through an
id supplied by the caller. Uniqueness constraints (carts.user_id and
cart + target) carry the concurrency guarantees: writes are attempted
and a lost race is resolved by re-reading or re-applying the atomic
quantity increment.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import IntegrityError

from common.exceptions import NotFound, InvalidTarget, ValidationFailed
from common.helpers import DB_INT_MAX, fits_db_int
from modules.auth.service import Identity
from modules.cart.models import Cart, CartItem
from modules.catalog.service import product_service
from modules.package.models import Package

logger = logging.getLogger("travelhub.cart")


def _check_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationFailed("quantity must be an integer >= 1")
    if quantity > DB_INT_MAX:
        raise ValidationFailed("quantity is too large")
    return quantity


class CartService:

    def get_or_create_cart(self, db: Session, identity: Identity) -> Cart:
        """Idempotent. A concurrent creator loses on the unique user_id and re-reads."""
        user_id = identity.subject_id
        cart = self._find_cart(db, user_id)
        if cart:
            return cart

        try:
            with db.begin_nested():
                cart = Cart(user_id=user_id)
                db.add(cart)
        except IntegrityError:
            # Race condition: another request created this cart
            cart = db.query(Cart).filter(Cart.user_id == user_id).one()
        return cart

    def get_cart(self, db: Session, identity: Identity) -> Cart:
        """Cart with items, products and packages loaded."""
        cart = self.get_or_create_cart(db, identity)
        return (
            db.query(Cart)
            .options(
                selectinload(Cart.items).selectinload(CartItem.product),
                selectinload(Cart.items).selectinload(CartItem.package),
            )
            .filter(Cart.id == cart.id)
            .populate_existing()
            .one()
        )

    def add_item(
        self, db: Session, identity: Identity,
        product_id: Optional[int] = None, package_id: Optional[int] = None,
        quantity: int = 1,
    ) -> CartItem:
        """
        Add `quantity` of one product or package. An existing line for the
        same target is incremented instead of duplicated.

        Raises:
            InvalidTarget if both or neither of product_id / package_id given
            NotFound if the target doesn't exist
            ValidationFailed if the merged quantity would not fit the column
        """
        if (product_id is None) == (package_id is None):
            raise InvalidTarget("Provide exactly one of product_id or package_id")
        quantity = _check_quantity(quantity)

        if product_id is not None:
            product_service.get_product(db, identity, product_id)
            target_col, target_id = CartItem.product_id, product_id
        else:
            if not fits_db_int(package_id) or not db.query(Package.id).filter(Package.id == package_id).first():
                raise NotFound("Package")
            target_col, target_id = CartItem.package_id, package_id

        cart = self.get_or_create_cart(db, identity)

        if not self._increment(db, cart.id, target_col, target_id, quantity):
            if self._line_exists(db, cart.id, target_col, target_id):
                raise ValidationFailed("Cart item quantity limit reached")
            try:
                with db.begin_nested():
                    db.add(CartItem(
                        cart_id=cart.id,
                        product_id=product_id,
                        package_id=package_id,
                        quantity=quantity,
                    ))
            except IntegrityError:
                # Concurrent add of the same target won the insert
                if not self._increment(db, cart.id, target_col, target_id, quantity):
                    raise ValidationFailed("Cart item quantity limit reached")

        item = (
            db.query(CartItem)
            .filter(CartItem.cart_id == cart.id, target_col == target_id)
            .populate_existing()
            .one()
        )
        logger.info(
            "Cart %s: %s %s now x%d (user %s)",
            cart.id, item.target_kind, target_id, item.quantity, identity.subject_id,
        )
        return item

    def update_item_quantity(self, db: Session, identity: Identity, item_id: int, quantity: int) -> CartItem:
        """Set an item's quantity. Items of other users' carts are NotFound."""
        quantity = _check_quantity(quantity)
        item = self._owned_item(db, identity, item_id)
        item.quantity = quantity
        db.flush()
        return item

    def remove_item(self, db: Session, identity: Identity, item_id: int):
        item = self._owned_item(db, identity, item_id)
        db.delete(item)
        db.flush()

    def clear_cart(self, db: Session, identity: Identity):
        """Remove all items from the caller's cart. No-op if empty or absent."""
        cart = db.query(Cart.id).filter(Cart.user_id == identity.subject_id).first()
        if not cart:
            return
        removed = db.query(CartItem).filter(CartItem.cart_id == cart.id).delete(synchronize_session=False)
        db.flush()
        if removed:
            logger.info("Cart of user %s cleared (%d item(s))", identity.subject_id, removed)

    # ==========================================
    # Private helpers
    # ==========================================

    def _find_cart(self, db: Session, user_id: int):
        return db.query(Cart).filter(Cart.user_id == user_id).first()

    def _increment(self, db: Session, cart_id: int, target_col, target_id: int, quantity: int) -> int:
        """
        Single UPDATE ... SET quantity = quantity + :q, skipped when the sum
        would overflow the column. Returns matched row count.
        """
        return (
            db.query(CartItem)
            .filter(
                CartItem.cart_id == cart_id,
                target_col == target_id,
                CartItem.quantity <= DB_INT_MAX - quantity,
            )
            .update({CartItem.quantity: CartItem.quantity + quantity}, synchronize_session=False)
        )

    def _line_exists(self, db: Session, cart_id: int, target_col, target_id: int) -> bool:
        return db.query(CartItem.id).filter(CartItem.cart_id == cart_id, target_col == target_id).first() is not None

    def _owned_item(self, db: Session, identity: Identity, item_id: int) -> CartItem:
        """Existence and ownership checked in one query."""
        if not fits_db_int(item_id):
            raise NotFound("Cart item")
        item = (
            db.query(CartItem)
            .join(Cart, Cart.id == CartItem.cart_id)
            .filter(CartItem.id == item_id, Cart.user_id == identity.subject_id)
            .first()
        )
        if not item:
            raise NotFound("Cart item")
        return item


# Singleton
cart_service = CartService()
