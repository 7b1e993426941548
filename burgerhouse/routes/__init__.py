"""API routers, one module per area; all are mounted by ``burgerhouse.main``."""
from .admin import router as admin_router
from .analytics import router as analytics_router
from .auth import router as auth_router
from .catalog import router as catalog_router
from .contact import router as contact_router
from .orders import router as orders_router

ALL_ROUTERS = (auth_router, catalog_router, orders_router, admin_router, analytics_router, contact_router)

__all__ = [
    "ALL_ROUTERS",
    "admin_router",
    "analytics_router",
    "auth_router",
    "catalog_router",
    "contact_router",
    "orders_router",
]
