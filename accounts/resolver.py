"""Builds a UserContext from the account store."""

import logging

from schemas.results import Outcome, FailureKind
from .models import UserContext
from .policy import is_admin, resolve_role
from .sqlite_store import SQLiteAccountStore

logger = logging.getLogger(__name__)


class UserContextResolver:
    """Resolves identity, organization, subscriptions and role for a user id."""

    def __init__(self, store: SQLiteAccountStore):
        self.store = store

    def resolve(self, user_id: str) -> Outcome:
        """
        Build the context for a user. Read-only, never raises.

        Args:
            user_id: User ID from the session

        Returns:
            Outcome holding a UserContext, or NOT_FOUND when no user row
            matches, or UPSTREAM_UNAVAILABLE when the store fails
        """
        try:
            user = self.store.get_user(user_id)
            if user is None:
                return Outcome.fail(FailureKind.NOT_FOUND, f"no user {user_id}")

            membership = self.store.get_primary_membership(user_id)
            products = (
                self.store.get_active_products(membership.organization_id)
                if membership else []
            )
        except Exception as e:
            logger.error(f"Failed to resolve user context for {user_id}: {e}")
            return Outcome.fail(FailureKind.UPSTREAM_UNAVAILABLE, str(e))

        admin = is_admin(user.id, user.email)
        context = UserContext(
            id=user.id,
            email=user.email,
            name=user.name,
            role=resolve_role(admin, membership.role if membership else None),
            organization_id=membership.organization_id if membership else None,
            organization_name=membership.organization_name if membership else None,
            products=products,
            is_admin=admin,
        )
        return Outcome.success(context)
