from decimal import Decimal

import pytest

from condosplit.models import BillRequest
from condosplit.sample_config import sample_config_data
from condosplit.services.config_io import load_config
from condosplit.services.rules import ConfigError, NotFoundError
from condosplit.services.split import calculate_split


def _totals(result):
    return {row.condo_id: row.total for row in result.rows}


def test_split_weighted_tables_20_20_60(config):
    result = calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("100")))

    assert _totals(result) == {
        "c1": Decimal("16.80"),
        "c2": Decimal("25.60"),
        "c3": Decimal("20.60"),
        "c4": Decimal("37.00"),
    }
    assert sum(_totals(result).values()) == Decimal("100.00")
    assert result.total == Decimal("100.00")
    assert [col.id for col in result.columns] == ["A3", "C", "B1"]
    assert [col.label for col in result.columns] == [
        "Tabella A3 (20%)",
        "Tabella C (20%)",
        "Tabella B1 (60%)",
    ]
    assert result.column_total("A3") == Decimal("20.00")
    assert result.column_total("B1") == Decimal("60.00")
    assert result.bill_label == "Luce"
    assert result.rule_label == "20% A3, 20% C, 60% B1"


def test_split_weighted_tables_25_75(config):
    result = calculate_split(config, BillRequest(bill_type_id="pulizie", amount=Decimal("200")))

    assert _totals(result) == {
        "c1": Decimal("33.00"),
        "c2": Decimal("51.00"),
        "c3": Decimal("40.50"),
        "c4": Decimal("75.50"),
    }
    assert sum(_totals(result).values()) == Decimal("200.00")


def test_split_rows_sorted_by_name(config):
    result = calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("100")))
    assert [row.condo_name for row in result.rows] == ["Bianchi", "Neri", "Rossi", "Verdi"]


def test_split_single_table_with_subtype(config):
    request = BillRequest(bill_type_id="ascensore", subtype_id="ordinaria", amount=Decimal("1000"))
    result = calculate_split(config, request)

    assert [(col.id, col.label) for col in result.columns] == [("B2", "Tabella B2")]
    assert _totals(result) == {
        "c1": Decimal("120.00"),
        "c2": Decimal("280.00"),
        "c3": Decimal("220.00"),
        "c4": Decimal("380.00"),
    }
    assert result.bill_label == "Ascensore • Ordinaria"


def test_split_custom_percent(config):
    result = calculate_split(config, BillRequest(bill_type_id="acqua", amount=Decimal("80")))

    assert [(col.id, col.label) for col in result.columns] == [("percent", "Percentuale")]
    assert _totals(result) == {
        "c1": Decimal("24.00"),
        "c2": Decimal("16.00"),
        "c3": Decimal("20.00"),
        "c4": Decimal("20.00"),
    }


def test_split_custom_percent_thirds():
    data = sample_config_data()
    data["billTypes"][3]["rule"]["percents"] = [
        {"condoId": "c1", "weight": 1},
        {"condoId": "c2", "weight": 1},
        {"condoId": "c3", "weight": 1},
    ]
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="acqua", amount=Decimal("100")))

    assert sum(_totals(result).values()) == Decimal("100.00")
    assert _totals(result)["c1"] == Decimal("33.34")
    assert "c4" not in _totals(result)


def test_split_tiny_amount_charges_nobody_a_negative_share():
    data = sample_config_data()
    data["billTypes"][3]["rule"]["percents"] = [
        {"condoId": condo_id, "weight": 25} for condo_id in ("c1", "c2", "c3", "c4")
    ]
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="acqua", amount=Decimal("0.02")))

    assert sum(_totals(result).values()) == Decimal("0.02")
    assert all(total >= 0 for total in _totals(result).values())
    assert _totals(result)["c1"] == Decimal("0.00")


def test_split_amount_with_sub_cent_precision(config):
    request = BillRequest(bill_type_id="ascensore", subtype_id="ordinaria", amount=Decimal("100.005"))
    result = calculate_split(config, request)

    assert result.total == Decimal("100.01")
    assert result.amount == Decimal("100.005")
    assert sum(_totals(result).values()) == Decimal("100.01")


def test_split_is_idempotent(config):
    request = BillRequest(bill_type_id="luce", amount=Decimal("123.45"))
    assert calculate_split(config, request) == calculate_split(config, request)


def test_split_unknown_bill_type(config):
    with pytest.raises(NotFoundError):
        calculate_split(config, BillRequest(bill_type_id="gas", amount=Decimal("10")))


def test_split_unknown_table():
    data = sample_config_data()
    data["billTypes"][2]["rule"]["tables"][0]["tableId"] = "Z9"
    config = load_config(data)
    with pytest.raises(NotFoundError):
        calculate_split(config, BillRequest(bill_type_id="pulizie", amount=Decimal("10")))


def test_split_missing_rule_propagates_config_error():
    data = sample_config_data()
    del data["billTypes"][0]["rule"]
    config = load_config(data)
    with pytest.raises(ConfigError):
        calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("10")))


def test_split_zero_weight_rule_is_inert():
    data = sample_config_data()
    for entry in data["billTypes"][2]["rule"]["tables"]:
        entry["weight"] = 0
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="pulizie", amount=Decimal("200")))

    assert result.columns == []
    assert result.rows == []
    assert result.total == Decimal("200.00")


def test_split_zero_weight_table_contributes_nothing():
    data = sample_config_data()
    for entry in data["tables"][2]["entries"]:
        entry["value"] = 0
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="ascensore", amount=Decimal("50")))

    assert [col.id for col in result.columns] == ["B2"]
    assert result.rows == []


def test_split_skips_unknown_condo_entries():
    data = sample_config_data()
    data["tables"][2]["entries"].append({"condoId": "c9", "value": 1000})
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="ascensore", amount=Decimal("100")))

    assert "c9" not in _totals(result)
    assert sum(_totals(result).values()) == Decimal("100.00")


def test_split_table_listed_twice_shares_one_column():
    data = sample_config_data()
    data["billTypes"][2]["rule"]["tables"] = [
        {"tableId": "A3", "weight": 0.5},
        {"tableId": "A3", "weight": 0.5},
    ]
    config = load_config(data)
    result = calculate_split(config, BillRequest(bill_type_id="pulizie", amount=Decimal("100")))

    assert [col.id for col in result.columns] == ["A3"]
    assert result.column_total("A3") == Decimal("100.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
def test_split_rejects_non_positive_amount(config, amount):
    with pytest.raises(ValueError):
        calculate_split(config, BillRequest(bill_type_id="luce", amount=amount))
