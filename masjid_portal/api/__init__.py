"""
Module API - Points d'entrée RESTful de l'application.
"""

from .deps import require_role, require_admin, require_cashier

__all__ = [
    "require_role",
    "require_admin",
    "require_cashier",
]
