"""Default roles every deployment starts with."""

import logging

from sqlalchemy.orm import Session

from gatehouse.models import Role

logger = logging.getLogger(__name__)

DEFAULT_ROLES: tuple[tuple[str, str], ...] = (
    ("Admin", "System Administrator - Full access to everything"),
    ("User", "Regular User - Can manage own account and make requests"),
    ("Manager", "Manager - Read access to user administration"),
    ("StoreManager", "Store Manager - Manages assigned store, products, and inventory"),
    ("WarehouseManager", "Warehouse Manager - Manages warehouse operations and stock"),
    ("SalesStaff", "Sales Staff - Handles sales and customer orders"),
    ("PurchaseStaff", "Purchase Staff - Handles purchase orders and supplier management"),
)


def ensure_default_roles(db: Session) -> list[str]:
    """Create any missing default role. Idempotent; returns the names created."""
    existing = {name for (name,) in db.query(Role.name).all()}
    created = []
    for name, description in DEFAULT_ROLES:
        if name not in existing:
            db.add(Role(name=name, description=description))
            created.append(name)
    if created:
        db.commit()
        logger.info("Seeded roles: %s", ", ".join(created))
    return created
