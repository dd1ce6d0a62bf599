"""Account, organization and product models."""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class Role(str, Enum):
    """Effective role of a user."""
    ADMIN = "admin"
    OWNER = "owner"
    MEMBER = "member"
    USER = "user"


class User(BaseModel):
    """A registered user."""
    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Membership(BaseModel):
    """A user's membership in an organization."""
    id: str
    organization_id: str
    organization_name: str
    role: str
    created_at: Optional[datetime] = None


class ProductAccess(BaseModel):
    """A product visible to a user through an active subscription."""
    id: str
    name: str
    plan: str
    status: str


class UserContext(BaseModel):
    """Per-request view of who the user is and what they have."""
    id: str
    email: str
    name: Optional[str] = None
    role: Role = Role.USER
    organization_id: Optional[str] = None
    organization_name: Optional[str] = None
    products: List[ProductAccess] = Field(default_factory=list)
    is_admin: bool = False
