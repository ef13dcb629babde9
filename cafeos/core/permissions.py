from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from cafeos.core.security import Identity
from cafeos.core.security_current import get_current_identity

MANAGER_ROLES = ("admin", "manager")
ALL_ROLES = ("admin", "manager", "staff")


def require_roles(*allowed_roles: str) -> Callable[[Identity], Identity]:
    normalized_allowed = {role.strip().lower() for role in allowed_roles if role.strip()}
    if not normalized_allowed:
        raise ValueError("At least one allowed role is required")

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role for this action",
            )
        return identity

    return dependency


require_manager = require_roles(*MANAGER_ROLES)
require_staff = require_roles(*ALL_ROLES)
