"""
Admin Dashboard Service
=========================
Aggregated catalog / customer statistics for the admin dashboard.
"""

from datetime import timedelta
from typing import Any, Dict

from sqlalchemy.orm import Session
from sqlalchemy import func as sa_func

from common.helpers import now_utc
from modules.auth.service import auth_service, Identity
from modules.cart.models import CartItem
from modules.catalog.models import Product, ProductKind
from modules.package.models import Package
from modules.user.models import User, UserRole


class DashboardService:

    def get_overview_stats(self, db: Session, identity: Identity) -> Dict[str, Any]:
        """Key catalog metrics. ADMIN only."""
        auth_service.require_admin(identity)
        week_ago = now_utc() - timedelta(days=7)

        # Products
        by_kind_rows = (
            db.query(Product.kind, sa_func.count(Product.id))
            .group_by(Product.kind)
            .all()
        )
        by_kind = {kind.value.lower(): 0 for kind in ProductKind}
        by_kind.update({kind.lower(): count for kind, count in by_kind_rows})

        # Users
        role_rows = db.query(User.role, sa_func.count(User.id)).group_by(User.role).all()
        by_role = {role.value.lower(): 0 for role in UserRole}
        by_role.update({role.lower(): count for role, count in role_rows})
        new_users = db.query(User).filter(User.created_at >= week_ago).count()

        # Carts with at least one item
        open_carts = db.query(sa_func.count(sa_func.distinct(CartItem.cart_id))).scalar() or 0

        return {
            "products": {
                "total": sum(by_kind.values()),
                "by_type": by_kind,
            },
            "packages": {
                "total": db.query(Package).count(),
            },
            "users": {
                "total": sum(by_role.values()),
                "by_role": by_role,
                "new_last_7_days": new_users,
            },
            "carts": {
                "open": open_carts,
            },
        }


# Singleton
dashboard_service = DashboardService()
