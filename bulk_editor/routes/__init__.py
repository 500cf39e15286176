"""
Routes package.
"""

from .bulk_edit import router as bulk_edit_router
from .products import router as products_router

__all__ = ["bulk_edit_router", "products_router"]
