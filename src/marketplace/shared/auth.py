"""Caller identity supplied by the upstream authentication layer.

Token issuance and verification happen outside this service; the gateway in
front of it forwards the authenticated user as ``X-User-Id`` and
``X-User-Role`` headers.
"""

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException


class Role(Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        role = Role(x_user_role.lower())
    except ValueError:
        raise HTTPException(status_code=401, detail="Unknown role") from None
    return Principal(user_id=x_user_id, role=role)


def require_role(*roles: Role):
    """Dependency factory that admits only the given roles."""

    def _check(principal: Principal = Depends(current_principal)) -> Principal:
        if principal.role not in roles:
            raise HTTPException(status_code=403, detail="Not authorized for this action")
        return principal

    return _check


buyer_only = require_role(Role.BUYER)
seller_only = require_role(Role.SELLER)
admin_only = require_role(Role.ADMIN)
