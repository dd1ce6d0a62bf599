"""Accounts: users, organizations, subscriptions and the role policy."""

from .models import Role, User, Membership, ProductAccess, UserContext
from .policy import is_admin, resolve_role
from .resolver import UserContextResolver
from .sqlite_store import SQLiteAccountStore

__all__ = [
    "Role",
    "User",
    "Membership",
    "ProductAccess",
    "UserContext",
    "is_admin",
    "resolve_role",
    "UserContextResolver",
    "SQLiteAccountStore",
]
