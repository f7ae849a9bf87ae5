from datetime import date, datetime

from utils.thresholds import (
    check_conformity,
    classify,
    evaluate_reading,
    is_out_of_range,
    limits_for,
    standard_applies,
)


def test_is_out_of_range_respects_only_present_bounds() -> None:
    assert is_out_of_range(5, 6, 9) is True
    assert is_out_of_range(10, 6, 9) is True
    assert is_out_of_range(7, 6, 9) is False
    assert is_out_of_range(6, 6, 9) is False
    assert is_out_of_range(9, 6, 9) is False
    assert is_out_of_range(1000, None, None) is False
    assert is_out_of_range(-5, None, 3) is False
    assert is_out_of_range(None, 6, 9) is False


def test_classify_checks_critical_band_first() -> None:
    threshold = {"warning_min": 6.5, "warning_max": 8.5, "critical_min": 6.0, "critical_max": 9.0}

    assert classify(7.0, threshold) == "normal"
    assert classify(8.7, threshold) == "warning"
    assert classify(6.2, threshold) == "warning"
    assert classify(9.5, threshold) == "critical"
    assert classify(5.0, threshold) == "critical"
    assert classify(None, threshold) == "unknown"


def test_limits_for_prefers_configured_rows() -> None:
    configured = [
        {"equipment_type": "chaudiere", "parameter_name": "ph", "min_value": 10, "max_value": 11, "unit": None},
        {"equipment_type": "circulation", "parameter_name": "ph", "min_value": 7, "max_value": 9, "unit": None},
    ]

    limits = limits_for("chaudiere", configured)

    assert limits == [{"parameter_name": "ph", "min_value": 10, "max_value": 11, "unit": None}]


def test_limits_for_falls_back_to_reference_tables() -> None:
    limits = {l["parameter_name"]: l for l in limits_for("circulation", [])}

    assert limits["ph"]["min_value"] == 8.1
    assert limits["ph"]["max_value"] == 8.3
    assert limits["th"]["min_value"] is None
    assert limits["th"]["max_value"] == 0.2
    assert limits_for("traitement_primaire", []) == []


def test_evaluate_reading_maps_parameters_to_columns() -> None:
    reading = {
        "equipment_type": "chaudiere",
        "ph_level": 12.5,
        "ta_level": 45,
        "phosphates": 10,
        "sio2_level": None,
    }

    violations = {v["parameter_name"]: v for v in evaluate_reading(reading, [])}

    assert set(violations) == {"ph", "phosphate"}
    assert violations["ph"]["value"] == 12.5
    assert violations["ph"]["max_value"] == 12
    assert violations["phosphate"]["min_value"] == 30


def test_standard_applies_within_validity_window() -> None:
    standard = {"valid_from": date(2024, 1, 1), "valid_to": date(2024, 12, 31)}

    assert standard_applies(standard, datetime(2024, 6, 1, 12, 0))
    assert standard_applies(standard, date(2024, 12, 31))
    assert not standard_applies(standard, date(2025, 1, 1))
    assert not standard_applies(standard, datetime(2023, 12, 31, 23, 59))
    assert standard_applies({"valid_from": None, "valid_to": None}, date(1990, 1, 1))


def test_check_conformity_filters_product_and_dates() -> None:
    test = {
        "product_name": "Gasoil",
        "test_date": datetime(2024, 5, 10),
        "density": 0.9,
        "cetane": 40,
        "couleur": "Jaune",
    }
    standards = [
        {"product_name": "Gasoil", "parameter_name": "density", "min_value": 0.82, "max_value": 0.86},
        {"product_name": "Gasoil", "parameter_name": "cetane", "min_value": 46, "max_value": None},
        {"product_name": "Gasoil", "parameter_name": "viscosity", "min_value": 2, "max_value": 4.5},
        {"product_name": "Gasoil", "parameter_name": "couleur", "min_value": None, "max_value": None},
        {"product_name": "Essence 95", "parameter_name": "density", "min_value": 0.72, "max_value": 0.775},
        {
            "product_name": "Gasoil", "parameter_name": "sulfur_content", "min_value": None, "max_value": 0.001,
            "valid_from": date(2025, 1, 1),
        },
    ]

    results = {r["parameter_name"]: r for r in check_conformity(test, standards)}

    assert set(results) == {"density", "cetane", "viscosity", "couleur"}
    assert results["density"]["conforming"] is False
    assert results["cetane"]["conforming"] is False
    assert results["viscosity"]["value"] is None
    assert results["viscosity"]["conforming"] is True
    assert results["couleur"]["value"] is None
