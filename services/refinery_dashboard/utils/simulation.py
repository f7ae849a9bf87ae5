# services/refinery_dashboard/utils/simulation.py

import random
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from models import Equipment, ProductQualityTest, ShutdownStartupEvent, WaterTreatmentReading
from utils.logging import setup_logging
from utils.periods import utcnow

logger = setup_logging()

WATER_EQUIPMENT_TYPES = ["circulation", "chaudiere", "tour_refroidissement", "traitement_primaire"]
WATER_EQUIPMENT_NAMES = [
    "Circuit Refroidissement 1", "Circuit Refroidissement 2", "Chaudière A", "Chaudière B",
    "Tour Nord", "Tour Sud", "Traitement Principal", "Traitement Secondaire",
]
WATER_STATUSES = ["operational", "maintenance", "normal", "warning"]

PRODUCTS = ["Essence 95", "Essence 98", "Gasoil", "Kérosène", "Fuel Lourd"]
QUALITY_STATUSES = ["conforming", "non_conforming", "pending"]
COLORS = ["Incolore", "Jaune pâle", "Jaune", "Ambré"]
RESIDUE_TYPES = ["Distillat", "Résidu", "Mélange"]

EQUIPMENT_TYPES = ["Pompe", "Compresseur", "Échangeur", "Réacteur", "Colonne", "Four"]
EQUIPMENT_CATEGORIES = ["Raffinage", "Utilité", "Sécurité", "Maintenance"]
LOCATIONS = ["Unité 100", "Unité 200", "Unité 300", "Utilités", "Tank Farm"]
EQUIPMENT_STATUSES = ["operational", "maintenance", "stopped", "alarm"]

UNITS = ["Unité 100", "Unité 200", "Unité 300", "Utilités", "Four 1", "Four 2"]
EVENT_TYPES = ["shutdown", "startup"]
REASONS = [
    "Maintenance préventive", "Panne équipement", "Inspection réglementaire",
    "Optimisation process", "Arrêt programmé", "Problème qualité",
]
CAUSES = ["planned", "unplanned", "regulatory", "economic"]
IMPACTS = ["low", "medium", "high"]
EVENT_STATUSES = ["planned", "ongoing", "completed", "cancelled"]

READING_SPREAD_DAYS = 30
EVENT_SPREAD_DAYS = 60


def _days_ago(rng: random.Random, now: datetime, days: int) -> datetime:
    return now - timedelta(days=rng.random() * days)


def water_readings(rng: random.Random, count: int, now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "equipment_name": rng.choice(WATER_EQUIPMENT_NAMES),
            "equipment_type": rng.choice(WATER_EQUIPMENT_TYPES),
            "chaudiere_number": rng.randint(1, 3),
            "ph_level": rng.uniform(6, 9),
            "temperature": rng.uniform(20, 80),
            "pressure": rng.uniform(1, 11),
            "flow_rate": rng.uniform(10, 60),
            "chlore_libre": rng.uniform(0, 5),
            "phosphates": rng.uniform(0, 20),
            "sio2_level": rng.uniform(0, 30),
            "ta_level": rng.uniform(0, 100),
            "th_level": rng.uniform(0, 50),
            "tac_level": rng.uniform(0, 200),
            "status": rng.choice(WATER_STATUSES),
            "timestamp": _days_ago(rng, now, READING_SPREAD_DAYS),
        }
        for _ in range(count)
    ]


def quality_tests(rng: random.Random, count: int, now: datetime) -> List[Dict[str, Any]]:
    rows = []
    for _ in range(count):
        test_date = _days_ago(rng, now, READING_SPREAD_DAYS)
        product = rng.choice(PRODUCTS)
        gasoline = product.startswith("Essence")
        diesel = product == "Gasoil"
        rows.append({
            "product_name": product,
            "batch_number": f"LOT{rng.randint(0, 9998):04d}",
            "test_date": test_date,
            "density": rng.uniform(0.7, 1.0),
            "viscosity": rng.uniform(2, 6) if diesel else None,
            "sulfur_content": rng.uniform(0, 0.001),
            "octane_rating": rng.uniform(90, 100) if gasoline else None,
            "cetane": rng.uniform(45, 55) if diesel else None,
            "point_initial": rng.uniform(-10, 10),
            "point_final": rng.uniform(150, 350),
            "cristallisation": rng.uniform(-5, 10) if diesel else None,
            "trouble": rng.uniform(0, 5),
            "indice": rng.uniform(80, 100),
            "evaporation_95": rng.uniform(50, 100) if gasoline else None,
            "ecoulement": rng.uniform(0, 10),
            "couleur": rng.choice(COLORS),
            "residue_type": rng.choice(RESIDUE_TYPES),
            "quality_status": rng.choice(QUALITY_STATUSES),
        })
    return rows


def equipment(rng: random.Random, count: int, now: datetime) -> List[Dict[str, Any]]:
    rows = []
    for i in range(1, count + 1):
        kind = rng.choice(EQUIPMENT_TYPES)
        last = now - timedelta(days=rng.random() * 180)
        letter = chr(65 + rng.randrange(26))
        rows.append({
            "equipment_id": f"EQ{i:03d}",
            "equipment_name": f"{kind} {letter}{rng.randint(1, 99)}",
            "equipment_type": kind.lower(),
            "equipment_category": rng.choice(EQUIPMENT_CATEGORIES),
            "location": rng.choice(LOCATIONS),
            "status": rng.choice(EQUIPMENT_STATUSES),
            "operating_hours": rng.uniform(0, 8760),
            "efficiency_percentage": rng.uniform(70, 100),
            "last_maintenance": last,
            "next_maintenance": last + timedelta(days=rng.uniform(30, 180)),
            "tag": f"{kind[:2].upper()}-{i:03d}",
            "is_available": rng.random() > 0.2,
        })
    return rows


def events(rng: random.Random, count: int, now: datetime) -> List[Dict[str, Any]]:
    rows = []
    for _ in range(count):
        start = _days_ago(rng, now, EVENT_SPREAD_DAYS)
        duration = rng.uniform(2, 50)
        # open events have neither an end nor a duration
        closed = rng.random() > 0.3
        rows.append({
            "unit_name": rng.choice(UNITS),
            "event_type": rng.choice(EVENT_TYPES),
            "start_time": start,
            "end_time": start + timedelta(hours=duration) if closed else None,
            "duration_hours": duration if closed else None,
            "reason": rng.choice(REASONS),
            "cause_category": rng.choice(CAUSES),
            "impact_level": rng.choice(IMPACTS),
            "status": rng.choice(EVENT_STATUSES),
            "operator_name": f"Opérateur {rng.randint(1, 20)}",
            "comments": "Intervention réalisée selon procédure" if rng.random() > 0.5 else None,
        })
    return rows


def generate_batch(seed: Optional[int], counts: Dict[str, int],
                   now: Optional[datetime] = None) -> Dict[str, List[Dict[str, Any]]]:
    """
    Builds a batch of simulated rows. The same seed and `now` always give
    the same batch.
    """
    rng = random.Random(seed)
    now = now or utcnow()
    return {
        "water_readings": water_readings(rng, counts.get("water_readings", 0), now),
        "quality_tests": quality_tests(rng, counts.get("quality_tests", 0), now),
        "equipment": equipment(rng, counts.get("equipment", 0), now),
        "events": events(rng, counts.get("events", 0), now),
    }


_MODELS = {
    "water_readings": WaterTreatmentReading,
    "quality_tests": ProductQualityTest,
    "equipment": Equipment,
    "events": ShutdownStartupEvent,
}


def insert_batch(db: Session, batch: Dict[str, List[Dict[str, Any]]],
                 created_by: Optional[str] = None) -> Dict[str, int]:
    """Adds every row of the batch in one transaction; the caller commits."""
    inserted = {}
    for key, rows in batch.items():
        model = _MODELS[key]
        db.add_all([model(**row, created_by=created_by) for row in rows])
        inserted[key] = len(rows)
        logger.debug(f"🎲 {len(rows)} simulated rows queued for {model.__tablename__}")
    return inserted
