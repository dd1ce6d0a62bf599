"""Role policy.

Admin detection is a placeholder heuristic carried over from the first
release of the site. Replace ``is_admin`` with a real role lookup to change
who can reach the admin endpoints; callers only depend on these functions.
"""

from typing import Optional

from .models import Role

_ADMIN_EMAIL_MARKERS = ("stephen", "admin")
_ADMIN_USER_ID = "1"

_MEMBERSHIP_ROLES = {
    "owner": Role.OWNER,
    "admin": Role.ADMIN,
    "member": Role.MEMBER,
}


def is_admin(user_id: Optional[str], email: Optional[str]) -> bool:
    """True if the email contains "stephen" or "admin", or the user id is "1"."""
    email = email or ""
    return any(marker in email for marker in _ADMIN_EMAIL_MARKERS) or user_id == _ADMIN_USER_ID


def membership_role(role: Optional[str]) -> Role:
    """Map an organization membership role onto ``Role``."""
    if not role:
        return Role.USER
    return _MEMBERSHIP_ROLES.get(role.lower(), Role.MEMBER)


def resolve_role(admin: bool, organization_role: Optional[str]) -> Role:
    """Admins are always ``Role.ADMIN``; otherwise the membership role, else ``Role.USER``."""
    if admin:
        return Role.ADMIN
    return membership_role(organization_role)


def listing_role(email: Optional[str]) -> Role:
    """Role shown in the admin user listing, which only looks at the email."""
    email = email or ""
    if any(marker in email for marker in _ADMIN_EMAIL_MARKERS):
        return Role.ADMIN
    return Role.USER
