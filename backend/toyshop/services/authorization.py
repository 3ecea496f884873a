"""
Role-based authorization decisions.

Roles are a closed set. Decisions are pure functions of the actor, the action
and (where ownership matters) the id of the user that owns the resource, so
they can be unit tested without a database.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..errors import AuthorizationError, ValidationError


class Role(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"

    @classmethod
    def parse(cls, value) -> "Role":
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Unknown role: {value}") from None


class Action(str, Enum):
    APPLY_DISCOUNT = "apply_discount"
    RETURN_SALE = "return_sale"
    VIEW_SALE = "view_sale"
    MANAGE_CATALOG = "manage_catalog"
    VIEW_INVENTORY = "view_inventory"
    ADJUST_INVENTORY = "adjust_inventory"
    MANAGE_SETTINGS = "manage_settings"
    MANAGE_USERS = "manage_users"
    VIEW_REPORTS = "view_reports"
    VIEW_STORE_REPORTS = "view_store_reports"
    VIEW_PROFIT = "view_profit"
    LIST_RETURNS = "list_returns"


@dataclass(frozen=True)
class Actor:
    """Identity supplied by the caller; the core never validates credentials."""
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(id=user.id, role=Role.parse(user.role))


ADMIN_ONLY = {
    Action.MANAGE_CATALOG,
    Action.VIEW_INVENTORY,
    Action.ADJUST_INVENTORY,
    Action.MANAGE_SETTINGS,
    Action.MANAGE_USERS,
    Action.VIEW_STORE_REPORTS,
    Action.VIEW_PROFIT,
    Action.LIST_RETURNS,
}

# Cashiers may act on resources they own (sales they rang up)
OWNER_SCOPED = {Action.RETURN_SALE, Action.VIEW_SALE}


def authorize(
    actor: Actor,
    action: Action,
    resource_owner_id: int | None = None,
    *,
    discount_allowed: bool = False,
) -> bool:
    """Return True when `actor` may perform `action`."""
    if actor.is_admin:
        return True
    if action in ADMIN_ONLY:
        return False
    if action is Action.APPLY_DISCOUNT:
        return discount_allowed
    if action in OWNER_SCOPED:
        return resource_owner_id is not None and resource_owner_id == actor.id
    return True


def require(
    actor: Actor,
    action: Action,
    resource_owner_id: int | None = None,
    *,
    discount_allowed: bool = False,
    message: str | None = None,
) -> None:
    """authorize() or raise AuthorizationError."""
    if not authorize(actor, action, resource_owner_id, discount_allowed=discount_allowed):
        raise AuthorizationError(message or "Unauthorized access", details={"action": action.value})
