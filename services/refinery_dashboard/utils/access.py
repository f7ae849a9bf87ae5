# services/refinery_dashboard/utils/access.py

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models import Profile, UserRole
from utils.logging import setup_logging

logger = setup_logging()

APP_ROLES = ("admin", "operator", "supervisor", "viewer")

# Module keys as stored in user_roles.module
WATER_TREATMENT = "water_treatment"
PRODUCT_QUALITY = "product_quality"
EQUIPMENT = "equipment"
SHUTDOWN_STARTUP = "shutdown_startup"
COMMERCIAL_STANDARDS = "commercial_standards"
ALERTS = "alerts"


@dataclass
class CurrentUser:
    id: Optional[str]
    roles: List[Tuple[str, Optional[str]]] = field(default_factory=list)


def has_role(user: CurrentUser, role: str, module: Optional[str] = None) -> bool:
    """
    True when the user holds `role` globally (module is null) or for `module`.
    Without a module only global grants count.
    """
    for granted, granted_module in user.roles:
        if granted != role:
            continue
        if granted_module is None or (module is not None and granted_module == module):
            return True
    return False


def can_edit(user: CurrentUser, module: str) -> bool:
    return (
        has_role(user, "operator", module)
        or has_role(user, "admin")
        or has_role(user, "supervisor")
    )


def can_delete(user: CurrentUser) -> bool:
    return has_role(user, "admin") or has_role(user, "supervisor")


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolves the caller from the X-User-Id header set by the auth proxy."""
    if not settings.AUTH_ENABLED:
        return CurrentUser(id=x_user_id, roles=[("admin", None)])

    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    profile = db.get(Profile, x_user_id)
    if profile is None:
        logger.warning(f"🔒 Unknown user id={x_user_id}")
        raise HTTPException(status_code=401, detail="Unknown user")

    roles = [
        (r.role, r.module)
        for r in db.query(UserRole).filter(UserRole.user_id == x_user_id).all()
    ]
    if not roles:
        raise HTTPException(status_code=403, detail="User has no role")
    return CurrentUser(id=profile.id, roles=roles)


def require_editor(module: str):
    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not can_edit(user, module):
            logger.warning(f"🔒 user={user.id} cannot edit module={module}")
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user
    return dependency


def require_deleter(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not can_delete(user):
        logger.warning(f"🔒 user={user.id} cannot delete")
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not has_role(user, "admin"):
        logger.warning(f"🔒 user={user.id} is not admin")
        raise HTTPException(status_code=403, detail="Administrator role required")
    return user
