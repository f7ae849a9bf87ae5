BASE = "/api/v1/water-treatment"


def _reading(**overrides):
    body = {"equipment_name": "Circuit Refroidissement 1", "ph_level": 8.2, "temperature": 35}
    body.update(overrides)
    return body


def test_operator_creates_reading_with_defaults(client, users) -> None:
    resp = client.post(BASE, json={"equipment_name": "Tour Nord"}, headers=users["water_operator"])

    assert resp.status_code == 201
    data = resp.json()
    assert data["equipment_type"] == "circulation"
    assert data["chaudiere_number"] == 1
    assert data["ph_level"] == 7.0
    assert data["status"] == "operational"
    assert data["created_by"] == "u-water-op"
    assert data["timestamp"] is not None


def test_reading_validation_errors(client, users) -> None:
    headers = users["water_operator"]

    assert client.post(BASE, json=_reading(ph_level=15), headers=headers).status_code == 422
    assert client.post(BASE, json=_reading(equipment_name=""), headers=headers).status_code == 422
    assert client.post(BASE, json=_reading(chaudiere_number=0), headers=headers).status_code == 422
    assert client.post(BASE, json=_reading(equipment_type="lagoon"), headers=headers).status_code == 422


def test_identity_is_required(client, users) -> None:
    assert client.get(BASE).status_code == 401
    assert client.get(BASE, headers={"X-User-Id": "nobody"}).status_code == 401
    assert client.get(BASE, headers=users["norole"]).status_code == 403
    assert client.get(BASE, headers=users["viewer"]).status_code == 200


def test_viewer_cannot_write(client, users) -> None:
    assert client.post(BASE, json=_reading(), headers=users["viewer"]).status_code == 403


def test_update_is_partial(client, users) -> None:
    created = client.post(BASE, json=_reading(pressure=4.0), headers=users["water_operator"]).json()

    resp = client.patch(f"{BASE}/{created['id']}", json={"ph_level": 8.25}, headers=users["water_operator"])

    assert resp.status_code == 200
    assert resp.json()["ph_level"] == 8.25
    assert resp.json()["pressure"] == 4.0


def test_patch_cannot_clear_required_columns(client, users) -> None:
    headers = users["water_operator"]
    created = client.post(BASE, json=_reading(), headers=headers).json()
    url = f"{BASE}/{created['id']}"

    assert client.patch(url, json={"equipment_name": None}, headers=headers).status_code == 422
    assert client.patch(url, json={"timestamp": None}, headers=headers).status_code == 422
    assert client.get(url, headers=headers).json()["equipment_name"] == "Circuit Refroidissement 1"

    resp = client.patch(url, json={"temperature": None}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["temperature"] is None


def test_only_supervisor_or_admin_deletes(client, users) -> None:
    created = client.post(BASE, json=_reading(), headers=users["water_operator"]).json()
    url = f"{BASE}/{created['id']}"

    assert client.delete(url, headers=users["water_operator"]).status_code == 403
    assert client.delete(url, headers=users["supervisor"]).status_code == 204
    assert client.get(url, headers=users["viewer"]).status_code == 404
    assert client.delete(url, headers=users["supervisor"]).status_code == 404


def test_list_is_newest_first_and_limited(client, users) -> None:
    headers = users["water_operator"]
    client.post(BASE, json=_reading(equipment_name="old", timestamp="2024-01-01T08:00:00Z"), headers=headers)
    client.post(BASE, json=_reading(equipment_name="new", timestamp="2024-01-02T08:00:00Z"), headers=headers)

    resp = client.get(BASE, params={"period": "2024-01"}, headers=headers)
    assert [r["equipment_name"] for r in resp.json()] == ["new", "old"]

    resp = client.get(BASE, params={"period": "2024-01", "limit": 1}, headers=headers)
    assert len(resp.json()) == 1

    assert client.get(BASE, params={"limit": 0}, headers=headers).status_code == 400
    assert client.get(BASE, params={"period": "2024-1x"}, headers=headers).status_code == 400


def test_aware_timestamps_are_stored_as_utc(client, users) -> None:
    resp = client.post(
        BASE,
        json=_reading(timestamp="2024-01-01T10:00:00+02:00"),
        headers=users["water_operator"],
    )

    assert resp.json()["timestamp"].startswith("2024-01-01T08:00:00")


def test_alerts_use_reference_limits_until_configured(client, users) -> None:
    headers = users["water_operator"]
    client.post(BASE, json=_reading(ph_level=8.2), headers=headers)
    high = client.post(BASE, json=_reading(ph_level=9.0), headers=headers).json()

    flagged = client.get(f"{BASE}/alerts", headers=headers).json()
    assert [f["reading_id"] for f in flagged] == [high["id"]]
    assert flagged[0]["violations"][0]["parameter_name"] == "ph"

    resp = client.post(
        f"{BASE}/limits",
        json={"equipment_type": "circulation", "parameter_name": "ph", "min_value": 6.5, "max_value": 9.5},
        headers=headers,
    )
    assert resp.status_code == 201

    assert client.get(f"{BASE}/alerts", headers=headers).json() == []
    evaluation = client.get(f"{BASE}/{high['id']}/evaluation", headers=headers).json()
    assert evaluation["out_of_range"] is False


def test_limit_bounds_are_validated(client, users) -> None:
    resp = client.post(
        f"{BASE}/limits",
        json={"equipment_type": "chaudiere", "parameter_name": "ph", "min_value": 12, "max_value": 10},
        headers=users["water_operator"],
    )
    assert resp.status_code == 422


def test_limit_patch_checks_the_merged_row(client, users) -> None:
    headers = users["water_operator"]
    created = client.post(
        f"{BASE}/limits",
        json={"equipment_type": "chaudiere", "parameter_name": "ph", "min_value": 10, "max_value": 12},
        headers=headers,
    ).json()
    url = f"{BASE}/limits/{created['id']}"

    assert client.patch(url, json={"min_value": 13}, headers=headers).status_code == 400
    assert client.patch(url, json={"max_value": 9}, headers=headers).status_code == 400

    resp = client.patch(url, json={"max_value": 11.5}, headers=headers)
    assert resp.status_code == 200
    assert (resp.json()["min_value"], resp.json()["max_value"]) == (10, 11.5)


def test_stats_for_today(client, users) -> None:
    headers = users["water_operator"]
    client.post(BASE, json=_reading(ph_level=7.0, temperature=50), headers=headers)
    client.post(BASE, json=_reading(ph_level=5.5, temperature=50), headers=headers)
    client.post(BASE, json=_reading(timestamp="2020-01-01T00:00:00"), headers=headers)

    stats = client.get(f"{BASE}/stats", headers=headers).json()

    assert stats == {"normal": 1, "warning": 1, "critical": 1, "total": 2}


def test_export_csv(client, users) -> None:
    headers = users["water_operator"]
    client.post(BASE, json=_reading(pressure=None), headers=headers)

    resp = client.get(f"{BASE}/export.csv", headers=headers)

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert "Water_treatment_data.csv" in resp.headers["content-disposition"]
    header, row = resp.text.splitlines()
    assert header.startswith("Date,Equipment,Type,Boiler,pH,Temperature,Pressure")
    assert row.split(",")[6] == ""
