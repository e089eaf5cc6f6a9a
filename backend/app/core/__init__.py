"""
Core module: configuration, stores, submission and aggregation.

Note: auth and security modules are not imported at package level to avoid
circular imports with app.models.
Import them directly: from app.core.auth import ... or from app.core.security import ...
"""
from .config import settings

__all__ = ["settings"]
