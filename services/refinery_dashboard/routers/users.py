from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from database import get_db
from models import Profile, UserRole
from schemas import (
    ProfileCreate,
    ProfileOut,
    ProfileUpdate,
    UserRoleCreate,
    UserRoleOut,
    UserRoleUpdate,
)
from utils.access import CurrentUser, get_current_user, require_admin
from utils.crud import create_row, delete_row, get_or_404, update_row
from utils.export import csv_response
from utils.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/api/v1/users", tags=["users"])

PROFILE_LABEL = "User profile"
ROLE_LABEL = "User role"

CSV_COLUMNS = [
    ("id", "ID"),
    ("last_name", "Last name"),
    ("first_name", "First name"),
    ("email", "E-mail"),
    ("department", "Department"),
    ("created_at", "Created at"),
]


@router.get("/me", response_model=ProfileOut)
async def get_me(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Profile of the caller with its roles."""
    if user.id is None:
        raise HTTPException(status_code=404, detail=f"{PROFILE_LABEL} not found")
    return get_or_404(db, Profile, user.id, PROFILE_LABEL)


# ---------- Roles ----------

@router.get("/roles", response_model=List[UserRoleOut])
async def list_roles(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return db.query(UserRole).order_by(UserRole.created_at.asc()).all()


@router.post("/roles", response_model=UserRoleOut, status_code=201)
async def create_role(
    body: UserRoleCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    get_or_404(db, Profile, body.user_id, PROFILE_LABEL)
    role = create_row(db, UserRole, body, ROLE_LABEL)
    logger.info(f"🔑 Role {role.role} (module={role.module}) granted to user={role.user_id}")
    return role


@router.patch("/roles/{role_id}", response_model=UserRoleOut)
async def update_role(
    role_id: str,
    body: UserRoleUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    obj = get_or_404(db, UserRole, role_id, ROLE_LABEL)
    return update_row(db, obj, body, ROLE_LABEL)


@router.delete("/roles/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    obj = get_or_404(db, UserRole, role_id, ROLE_LABEL)
    delete_row(db, obj, ROLE_LABEL)
    return Response(status_code=204)


# ---------- Profiles ----------

def _profiles(db: Session):
    return db.query(Profile).order_by(Profile.last_name.asc(), Profile.first_name.asc()).all()


@router.get("/export.csv")
async def export_profiles(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return csv_response(_profiles(db), CSV_COLUMNS, "Users")


@router.get("", response_model=List[ProfileOut])
async def list_profiles(
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return _profiles(db)


@router.post("", response_model=ProfileOut, status_code=201)
async def create_profile(
    body: ProfileCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return create_row(db, Profile, body, PROFILE_LABEL)


@router.get("/{user_id}", response_model=ProfileOut)
async def get_profile(
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    return get_or_404(db, Profile, user_id, PROFILE_LABEL)


@router.get("/{user_id}/roles", response_model=List[UserRoleOut])
async def get_profile_roles(
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    get_or_404(db, Profile, user_id, PROFILE_LABEL)
    return db.query(UserRole).filter(UserRole.user_id == user_id).all()


@router.patch("/{user_id}", response_model=ProfileOut)
async def update_profile(
    user_id: str,
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    obj = get_or_404(db, Profile, user_id, PROFILE_LABEL)
    return update_row(db, obj, body, PROFILE_LABEL)


@router.delete("/{user_id}", status_code=204)
async def delete_profile(
    user_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    if user_id == user.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own profile")
    obj = get_or_404(db, Profile, user_id, PROFILE_LABEL)
    delete_row(db, obj, PROFILE_LABEL)
    return Response(status_code=204)
