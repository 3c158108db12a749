"""API routes module."""

from inventory.api.routes.health import router as health_router
from inventory.api.routes.products import router as products_router
from inventory.api.routes.transfer import router as transfer_router

__all__ = ["health_router", "products_router", "transfer_router"]
