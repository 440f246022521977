"""Request-scoped dependencies: services and caller identity.

Credentials are verified upstream. The gateway forwards the verified
identity as ``X-User-Id`` and ``X-User-Role`` headers.
"""

from dataclasses import dataclass

from fastapi import Depends, Header, HTTPException, Request

from storefront.wiring import Services

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Caller:
    user_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    def can_view(self, order) -> bool:
        return self.is_admin or str(order.user_id) == self.user_id


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Authentication required")
    return Caller(user_id=x_user_id.strip(), role=(x_user_role or "customer").strip().lower())


def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return caller
