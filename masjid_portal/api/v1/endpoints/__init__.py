"""
Endpoints de l'API v1.
"""

from . import auth, transactions, committee, dashboard

__all__ = [
    "auth",
    "transactions",
    "committee",
    "dashboard",
]
