from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from database import get_db
from models import CommercialStandard, ProductQualityTest
from schemas import (
    ConformityReport,
    ProductQualityCreate,
    ProductQualityOut,
    ProductQualityStats,
    ProductQualityUpdate,
)
from utils.access import (
    PRODUCT_QUALITY,
    CurrentUser,
    get_current_user,
    require_deleter,
    require_editor,
)
from utils.aggregation import product_quality_stats
from utils.crud import check_limit, create_row, delete_row, get_or_404, list_rows, update_row
from utils.export import csv_response
from utils.logging import setup_logging
from utils.thresholds import check_conformity

logger = setup_logging()

router = APIRouter(prefix="/api/v1/product-quality", tags=["product-quality"])

LABEL = "Product quality test"

CSV_COLUMNS = [
    ("test_date", "Test date"),
    ("product_name", "Product"),
    ("batch_number", "Batch"),
    ("density", "Density"),
    ("viscosity", "Viscosity"),
    ("sulfur_content", "Sulfur"),
    ("octane_rating", "Octane"),
    ("cetane", "Cetane"),
    ("point_initial", "Initial point"),
    ("point_final", "Final point"),
    ("couleur", "Color"),
    ("quality_status", "Status"),
]


def _tests(db: Session, period: Optional[str], limit: Optional[int],
           product_name: Optional[str] = None, quality_status: Optional[str] = None):
    return list_rows(
        db,
        ProductQualityTest,
        order_by=ProductQualityTest.test_date.desc(),
        period=period,
        date_column=ProductQualityTest.test_date,
        limit=limit,
        filters={"product_name": product_name, "quality_status": quality_status},
    )


@router.get("/stats", response_model=ProductQualityStats)
async def get_stats(
    period: Optional[str] = "today",
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Conformity rate and status counts of the tests of the period."""
    return ProductQualityStats(**product_quality_stats(_tests(db, period, None)))


@router.get("/export.csv")
async def export_tests(
    period: Optional[str] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return csv_response(_tests(db, period, None), CSV_COLUMNS, "Product quality data")


@router.get("", response_model=List[ProductQualityOut])
async def list_tests(
    period: Optional[str] = None,
    product_name: Optional[str] = None,
    quality_status: Optional[str] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return _tests(db, period, check_limit(limit), product_name, quality_status)


@router.post("", response_model=ProductQualityOut, status_code=201)
async def create_test(
    body: ProductQualityCreate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(PRODUCT_QUALITY)),
):
    return create_row(db, ProductQualityTest, body, LABEL, created_by=user.id)


@router.get("/{test_id}", response_model=ProductQualityOut)
async def get_test(
    test_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    return get_or_404(db, ProductQualityTest, test_id, LABEL)


@router.get("/{test_id}/conformity", response_model=ConformityReport)
async def get_conformity(
    test_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Checks a test against the commercial standards of its product that
    are valid on the test date.
    """
    test = get_or_404(db, ProductQualityTest, test_id, LABEL)
    standards = (
        db.query(CommercialStandard)
        .filter(CommercialStandard.product_name == test.product_name)
        .all()
    )
    parameters = check_conformity(test, standards)
    return ConformityReport(
        test_id=test.id,
        product_name=test.product_name,
        batch_number=test.batch_number,
        conforming=all(p["conforming"] for p in parameters),
        parameters=parameters,
    )


@router.patch("/{test_id}", response_model=ProductQualityOut)
async def update_test(
    test_id: str,
    body: ProductQualityUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_editor(PRODUCT_QUALITY)),
):
    obj = get_or_404(db, ProductQualityTest, test_id, LABEL)
    return update_row(db, obj, body, LABEL)


@router.delete("/{test_id}", status_code=204)
async def delete_test(
    test_id: str,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_deleter),
):
    obj = get_or_404(db, ProductQualityTest, test_id, LABEL)
    delete_row(db, obj, LABEL)
    return Response(status_code=204)
