from models import Equipment, ProductQualityTest, ShutdownStartupEvent, WaterTreatmentReading

DASHBOARD = "/api/v1/dashboard"
SIMULATE = "/api/v1/admin/simulate"


def test_system_endpoints(client) -> None:
    assert client.get("/health").json() == {"status": "ok", "service": "refinery_dashboard"}
    assert client.get("/ready").json() == {"status": "ready"}
    assert client.get("/metrics").status_code == 200


def test_empty_dashboard(client, users) -> None:
    stats = client.get(DASHBOARD, headers=users["viewer"]).json()

    assert stats["period"] == "today"
    assert stats["water_treatment"]["total"] == 0
    assert stats["product_quality"]["conformity_rate"] == 0.0
    assert stats["equipment"]["availability"] == 0.0
    assert stats["alerts_count"] == 0
    assert stats["active_users"] == 5
    assert stats["data_collected"] == 0


def test_dashboard_for_today(client, users) -> None:
    headers = users["admin"]
    client.post("/api/v1/water-treatment", json={"equipment_name": "Tour Sud", "temperature": 40}, headers=headers)
    client.post("/api/v1/water-treatment", json={"equipment_name": "Tour Sud", "timestamp": "2020-01-01T00:00:00"},
                headers=headers)
    client.post("/api/v1/product-quality", json={"product_name": "Gasoil", "batch_number": "LOT1",
                                                  "quality_status": "conforming"}, headers=headers)
    client.post("/api/v1/equipment", json={"equipment_id": "EQ1", "equipment_name": "Pompe", "equipment_type": "pompe"},
                headers=headers)
    client.post("/api/v1/alerts", json={"alert_type": "warning", "title": "t", "message": "m",
                                        "module_name": "equipment"}, headers=headers)

    stats = client.get(DASHBOARD, headers=headers).json()

    assert stats["water_treatment"] == {"normal": 1, "warning": 0, "critical": 0, "total": 1}
    assert stats["product_quality"]["conformity_rate"] == 100.0
    assert stats["equipment"]["availability"] == 100.0
    assert stats["alerts_count"] == 1
    assert stats["data_collected"] == 2


def test_dashboard_for_a_month(client, users) -> None:
    headers = users["admin"]
    client.post("/api/v1/water-treatment", json={"equipment_name": "Tour Sud", "timestamp": "2020-01-15T00:00:00"},
                headers=headers)

    stats = client.get(DASHBOARD, params={"period": "2020-01"}, headers=headers).json()

    assert stats["water_treatment"]["total"] == 1
    assert stats["period_start"].startswith("2020-01-01")
    assert client.get(DASHBOARD, params={"period": "yesterday"}, headers=headers).status_code == 400


def test_simulation_is_admin_only(client, users) -> None:
    assert client.post(SIMULATE, json={"seed": 1}, headers=users["supervisor"]).status_code == 403


def test_simulation_inserts_requested_counts(client, users, db) -> None:
    body = {"seed": 11, "water_readings": 12, "quality_tests": 8, "equipment": 5, "events": 3}

    resp = client.post(SIMULATE, json=body, headers=users["admin"])

    assert resp.status_code == 201
    assert resp.json() == {"water_readings": 12, "quality_tests": 8, "equipment": 5, "events": 3}
    assert db.query(WaterTreatmentReading).count() == 12
    assert db.query(ProductQualityTest).count() == 8
    assert db.query(Equipment).count() == 5
    assert db.query(ShutdownStartupEvent).count() == 3
    assert {r.created_by for r in db.query(Equipment).all()} == {"u-admin"}


def test_simulation_defaults(client, users, db) -> None:
    resp = client.post(SIMULATE, headers=users["admin"])

    assert resp.json() == {"water_readings": 100, "quality_tests": 80, "equipment": 50, "events": 30}


def test_simulation_counts_are_bounded(client, users) -> None:
    assert client.post(SIMULATE, json={"water_readings": 5000}, headers=users["admin"]).status_code == 422
