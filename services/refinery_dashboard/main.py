# services/refinery_dashboard/main.py

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from utils.logging import setup_logging
from database import engine, ensure_schema
from models import Base
from config import settings
from routers import (
    admin,
    alerts,
    commercial_standards,
    dashboard,
    equipment,
    product_quality,
    production,
    shutdown_startup,
    users,
    water_treatment,
)


# --- Logging ---
logger = setup_logging()

# --- FastAPI app ---
app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.VERSION,
    description="Refinery operations dashboard: water treatment, product quality, "
                "equipment and shutdown/startup records",
)

# --- Prometheus metrics ---
Instrumentator().instrument(app).expose(app, include_in_schema=False)


# --- Application events ---
@app.on_event("startup")
def startup_event():
    """Creates the schema and the tables on service start."""
    ensure_schema()
    Base.metadata.create_all(bind=engine)
    logger.info(f"🏭 refinery_dashboard started (env={settings.ENV}, auth={settings.AUTH_ENABLED}).")


# --- Health & readiness ---
@app.get("/health", tags=["system"])
async def health():
    return {"status": "ok", "service": "refinery_dashboard"}


@app.get("/ready", tags=["system"])
async def ready():
    return {"status": "ready"}


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Refinery Dashboard is operational"}


# --- Domain routers ---
app.include_router(dashboard.router)
app.include_router(water_treatment.router)
app.include_router(product_quality.router)
app.include_router(commercial_standards.router)
app.include_router(equipment.router)
app.include_router(shutdown_startup.router)
app.include_router(production.router)
app.include_router(alerts.router)
app.include_router(users.router)
app.include_router(admin.router)
