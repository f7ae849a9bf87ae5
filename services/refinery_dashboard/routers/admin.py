from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from schemas import SimulationRequest, SimulationResult
from utils.access import CurrentUser, require_admin
from utils.crud import commit_changes
from utils.logging import setup_logging
from utils.simulation import generate_batch, insert_batch

logger = setup_logging()

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.post("/simulate", response_model=SimulationResult, status_code=201)
async def simulate(
    body: SimulationRequest = SimulationRequest(),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(require_admin),
):
    """
    Fills the tables with simulated readings, tests, equipment and events.

    Without a seed in the request SIMULATION_SEED is used; when both are
    unset every call produces a different batch.
    """
    seed = body.seed if body.seed is not None else settings.SIMULATION_SEED
    logger.info(f"🎲 Simulation requested by user={user.id}, seed={seed}")

    batch = generate_batch(seed, body.model_dump(exclude={"seed"}))
    inserted = insert_batch(db, batch, created_by=user.id)
    commit_changes(db, "insert", "simulated data")

    logger.info(f"🎲 Simulation done: {inserted}")
    return SimulationResult(**inserted)
