import pytest

QUALITY = "/api/v1/product-quality"
STANDARDS = "/api/v1/commercial-standards"


def _test(**overrides):
    body = {"product_name": "Gasoil", "batch_number": "LOT0042", "density": 0.84, "cetane": 51}
    body.update(overrides)
    return body


def test_create_defaults_to_pending(client, users) -> None:
    resp = client.post(QUALITY, json=_test(), headers=users["admin"])

    assert resp.status_code == 201
    assert resp.json()["quality_status"] == "pending"
    assert resp.json()["created_by"] == "u-admin"


def test_operator_of_another_module_is_refused(client, users) -> None:
    assert client.post(QUALITY, json=_test(), headers=users["water_operator"]).status_code == 403


@pytest.mark.parametrize(
    "overrides",
    [{"product_name": ""}, {"batch_number": ""}, {"quality_status": "approved"}],
)
def test_quality_validation(client, users, overrides) -> None:
    assert client.post(QUALITY, json=_test(**overrides), headers=users["admin"]).status_code == 422


def test_list_filters(client, users) -> None:
    headers = users["admin"]
    client.post(QUALITY, json=_test(quality_status="conforming"), headers=headers)
    client.post(QUALITY, json=_test(product_name="Essence 95", quality_status="non_conforming"), headers=headers)

    resp = client.get(QUALITY, params={"product_name": "Gasoil"}, headers=headers)
    assert [t["product_name"] for t in resp.json()] == ["Gasoil"]

    resp = client.get(QUALITY, params={"quality_status": "non_conforming"}, headers=headers)
    assert [t["product_name"] for t in resp.json()] == ["Essence 95"]


def test_stats_conformity_rate(client, users) -> None:
    headers = users["admin"]
    for status in ("conforming", "conforming", "non_conforming", "pending"):
        client.post(QUALITY, json=_test(quality_status=status), headers=headers)

    stats = client.get(f"{QUALITY}/stats", headers=headers).json()

    assert stats["conformity_rate"] == 50.0
    assert stats["tests_in_progress"] == 1
    assert stats["non_conforming"] == 1
    assert stats["total_tests"] == 4


def test_conformity_against_standards(client, users) -> None:
    headers = users["admin"]
    for standard in (
        {"product_name": "Gasoil", "parameter_name": "density", "min_value": 0.82, "max_value": 0.86},
        {"product_name": "Gasoil", "parameter_name": "cetane", "min_value": 46},
    ):
        assert client.post(STANDARDS, json=standard, headers=headers).status_code == 201

    ok = client.post(QUALITY, json=_test(), headers=headers).json()
    bad = client.post(QUALITY, json=_test(density=0.9), headers=headers).json()

    report = client.get(f"{QUALITY}/{ok['id']}/conformity", headers=headers).json()
    assert report["conforming"] is True
    assert len(report["parameters"]) == 2

    report = client.get(f"{QUALITY}/{bad['id']}/conformity", headers=headers).json()
    assert report["conforming"] is False
    failing = [p["parameter_name"] for p in report["parameters"] if not p["conforming"]]
    assert failing == ["density"]


def test_standard_validation(client, users) -> None:
    headers = users["admin"]

    assert client.post(STANDARDS, json={"product_name": "", "parameter_name": "density"}, headers=headers).status_code == 422
    assert client.post(
        STANDARDS,
        json={"product_name": "Gasoil", "parameter_name": "density", "min_value": 1, "max_value": 0.5},
        headers=headers,
    ).status_code == 422
    assert client.post(
        STANDARDS,
        json={"product_name": "Gasoil", "parameter_name": "density",
              "valid_from": "2024-06-01", "valid_to": "2024-01-01"},
        headers=headers,
    ).status_code == 422


def test_standard_crud(client, users) -> None:
    headers = users["supervisor"]
    created = client.post(
        STANDARDS,
        json={"product_name": "Kérosène", "parameter_name": "point_final", "max_value": 300, "unit": "°C"},
        headers=headers,
    ).json()
    url = f"{STANDARDS}/{created['id']}"

    resp = client.patch(url, json={"max_value": 290}, headers=headers)
    assert resp.json()["max_value"] == 290
    assert resp.json()["unit"] == "°C"

    listed = client.get(STANDARDS, params={"product_name": "Kérosène"}, headers=users["viewer"]).json()
    assert [s["id"] for s in listed] == [created["id"]]

    assert client.delete(url, headers=headers).status_code == 204
    assert client.get(url, headers=headers).status_code == 404


def test_standard_patch_keeps_ranges_ordered(client, users) -> None:
    headers = users["supervisor"]
    created = client.post(
        STANDARDS,
        json={
            "product_name": "Kérosène",
            "parameter_name": "density",
            "min_value": 0.8,
            "max_value": 0.9,
            "valid_from": "2024-01-01",
            "valid_to": "2024-06-01",
        },
        headers=headers,
    ).json()
    url = f"{STANDARDS}/{created['id']}"

    # one end of each range is enough to invert it against the stored row
    assert client.patch(url, json={"min_value": 5.0}, headers=headers).status_code == 400
    assert client.patch(url, json={"valid_from": "2025-01-01"}, headers=headers).status_code == 400
    assert client.patch(url, json={"min_value": 5.0, "valid_from": "2025-01-01"}, headers=headers).status_code == 400

    stored = client.get(url, headers=headers).json()
    assert (stored["min_value"], stored["max_value"]) == (0.8, 0.9)
    assert stored["valid_from"] == "2024-01-01"

    resp = client.patch(url, json={"min_value": 0.85}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["min_value"] == 0.85

    # clearing the stored bound lifts the constraint
    resp = client.patch(url, json={"max_value": None, "min_value": 5.0}, headers=headers)
    assert resp.status_code == 200


def test_patch_cannot_clear_required_columns(client, users) -> None:
    headers = users["admin"]
    created = client.post(QUALITY, json=_test(), headers=headers).json()
    url = f"{QUALITY}/{created['id']}"

    assert client.patch(url, json={"test_date": None}, headers=headers).status_code == 422
    assert client.patch(url, json={"batch_number": None}, headers=headers).status_code == 422

    standard = client.post(STANDARDS, json={"product_name": "Gasoil", "parameter_name": "density"},
                           headers=headers).json()
    resp = client.patch(f"{STANDARDS}/{standard['id']}", json={"parameter_name": None}, headers=headers)
    assert resp.status_code == 422


def test_quality_export_csv(client, users) -> None:
    client.post(QUALITY, json=_test(), headers=users["admin"])

    resp = client.get(f"{QUALITY}/export.csv", headers=users["viewer"])

    assert resp.status_code == 200
    assert "Product_quality_data.csv" in resp.headers["content-disposition"]
    assert len(resp.text.splitlines()) == 2
