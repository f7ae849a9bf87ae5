from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from database import get_db
from models import CommercialStandard
from schemas import CommercialStandardCreate, CommercialStandardOut, CommercialStandardUpdate
from utils.access import (
    COMMERCIAL_STANDARDS,
    CurrentUser,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.crud import (
    check_limit,
    check_merged_order,
    create_row,
    delete_row,
    get_or_404,
    list_rows,
    update_row,
)
from utils.export import csv_response

router = APIRouter(prefix="/api/v1/commercial-standards", tags=["commercial-standards"])

LABEL = "Commercial standard"

CSV_COLUMNS = [
    ("product_name", "Product"),
    ("parameter_name", "Parameter"),
    ("min_value", "Min"),
    ("max_value", "Max"),
    ("unit", "Unit"),
    ("valid_from", "Valid from"),
    ("valid_to", "Valid to"),
]


def _standards(db: Session, product_name: Optional[str], limit: Optional[int]):
    return list_rows(
        db,
        CommercialStandard,
        order_by=CommercialStandard.product_name.asc(),
        limit=limit,
        filters={"product_name": product_name},
    )


@router.get("/export.csv")
async def export_standards(
    product_name: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return csv_response(_standards(db, product_name, None), CSV_COLUMNS, "Commercial standards")


@router.get("", response_model=List[CommercialStandardOut])
async def list_standards(
    product_name: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _standards(db, product_name, check_limit(limit))


@router.post("", response_model=CommercialStandardOut, status_code=201)
async def create_standard(
    body: CommercialStandardCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(COMMERCIAL_STANDARDS)),
):
    return create_row(db, CommercialStandard, body, LABEL)


@router.get("/{standard_id}", response_model=CommercialStandardOut)
async def get_standard(
    standard_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, CommercialStandard, standard_id, LABEL)


@router.patch("/{standard_id}", response_model=CommercialStandardOut)
async def update_standard(
    standard_id: str,
    body: CommercialStandardUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(COMMERCIAL_STANDARDS)),
):
    obj = get_or_404(db, CommercialStandard, standard_id, LABEL)
    check_merged_order(obj, body, "min_value", "max_value")
    check_merged_order(obj, body, "valid_from", "valid_to")
    return update_row(db, obj, body, LABEL)


@router.delete("/{standard_id}", status_code=204)
async def delete_standard(
    standard_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, CommercialStandard, standard_id, LABEL)
    delete_row(db, obj, LABEL)
    return Response(status_code=204)
