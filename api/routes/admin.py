"""Admin endpoints.

Provides:
- GET /api/admin/users
- GET /api/admin/organizations
- GET /api/admin/products
- PATCH /api/admin/products - Enable / disable a product
- GET /api/admin/subscriptions

Every route requires a session that passes the admin policy.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, ConfigDict, Field, ValidationError, StrictBool

from accounts.policy import listing_role
from auth.session_provider import SessionUser
from orchestrator import EdgeAssistant
from api.deps import APIError, get_assistant, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


class ProductUpdate(BaseModel):
    """Body of PATCH /api/admin/products."""
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId", min_length=1)
    active: StrictBool


def _store_call(what: str, fn, *args):
    try:
        return fn(*args)
    except Exception as e:
        logger.error(f"Error {what}: {e}")
        raise APIError(500, "Internal Server Error")


@router.get("/users")
def list_users(
    _: SessionUser = Depends(require_admin),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> List[Dict[str, Any]]:
    users = _store_call("fetching users", assistant.account_store.list_users)
    for user in users:
        user["role"] = listing_role(user["email"]).value
    return users


@router.get("/organizations")
def list_organizations(
    _: SessionUser = Depends(require_admin),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> List[Dict[str, Any]]:
    return _store_call("fetching organizations", assistant.account_store.list_organizations)


@router.get("/products")
def list_products(
    _: SessionUser = Depends(require_admin),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> List[Dict[str, Any]]:
    return _store_call("fetching products", assistant.account_store.list_products)


@router.patch("/products")
def update_product(
    body: Optional[Dict[str, Any]] = Body(None),
    _: SessionUser = Depends(require_admin),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> Dict[str, Any]:
    """Set a product's ``active`` flag."""
    try:
        update = ProductUpdate.model_validate(body or {})
    except ValidationError:
        raise APIError(400, "Invalid request data")

    _store_call(
        "updating product",
        assistant.account_store.set_product_active,
        update.product_id,
        update.active,
    )
    logger.info(f"Product {update.product_id} active={update.active}")
    return {"success": True}


@router.get("/subscriptions")
def list_subscriptions(
    _: SessionUser = Depends(require_admin),
    assistant: EdgeAssistant = Depends(get_assistant),
) -> List[Dict[str, Any]]:
    return _store_call("fetching subscriptions", assistant.account_store.list_subscriptions)
