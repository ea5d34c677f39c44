from decimal import Decimal

import pytest

from condosplit.models import BillRequest, SavedBill
from condosplit.sample_config import sample_config_data
from condosplit.services.combine import combine_bills
from condosplit.services.config_io import load_config
from condosplit.services.rules import NotFoundError
from condosplit.services.split import calculate_split


def _bill(bill_id, bill_type_id, amount, subtype_id=None, label=""):
    return SavedBill(
        id=bill_id,
        bill_type_id=bill_type_id,
        bill_label=label,
        amount=Decimal(amount),
        subtype_id=subtype_id,
    )


def test_combine_empty(config):
    result = combine_bills(config, [])
    assert result.bills == []
    assert result.columns == []
    assert result.rows == []
    assert result.total == Decimal("0.00")


def test_combine_single_bill_matches_split(config):
    bill = _bill("b1", "luce", "100")
    result = combine_bills(config, [bill])
    split = calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("100")))

    assert result.totals_by_condo() == split.totals_by_condo()
    assert [col.id for col in result.columns] == [
        "bill_b1",
        "bill_b1_detail_A3",
        "bill_b1_detail_C",
        "bill_b1_detail_B1",
    ]
    assert "total" not in [col.id for col in result.columns]
    assert result.columns[0].label == "Luce"
    assert result.total == Decimal("100.00")


def test_combine_detail_columns_carry_split_values(config):
    result = combine_bills(config, [_bill("b1", "luce", "100")])
    rossi = next(row for row in result.rows if row.condo_id == "c1")

    assert rossi.allocations["bill_b1"] == Decimal("16.80")
    assert rossi.allocations["bill_b1_detail_A3"] == Decimal("4.20")
    assert rossi.allocations["bill_b1_detail_C"] == Decimal("3.60")
    assert rossi.allocations["bill_b1_detail_B1"] == Decimal("9.00")


def test_combine_detail_columns_keep_split_labels(config):
    result = combine_bills(config, [_bill("b1", "luce", "100")])
    split = calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("100")))

    assert [col.label for col in result.columns[1:]] == [col.label for col in split.columns]


def test_combine_two_bills_adds_total_column(config):
    bills = [_bill("b1", "luce", "100"), _bill("b2", "pulizie", "200")]
    result = combine_bills(config, bills)

    assert result.columns[-1].id == "total"
    assert result.columns[-1].label == "Totale"
    assert result.totals_by_condo() == {
        "c1": Decimal("49.80"),
        "c2": Decimal("76.60"),
        "c3": Decimal("61.10"),
        "c4": Decimal("112.50"),
    }
    for row in result.rows:
        assert row.allocations["total"] == row.total
        assert row.total == row.allocations["bill_b1"] + row.allocations["bill_b2"]
    assert result.total == Decimal("300.00")
    assert result.column_total("total") == Decimal("300.00")
    assert [row.condo_name for row in result.rows] == ["Bianchi", "Neri", "Rossi", "Verdi"]


def test_combine_same_table_in_two_bills_keeps_columns_apart(config):
    bills = [
        _bill("b1", "ascensore", "100", subtype_id="straordinaria"),
        _bill("b2", "pulizie", "200"),
    ]
    result = combine_bills(config, bills)
    ids = [col.id for col in result.columns]

    assert "bill_b1_detail_A3" in ids
    assert "bill_b2_detail_A3" in ids
    assert len(ids) == len(set(ids))
    assert result.column_total("bill_b1_detail_A3") == Decimal("100.00")
    assert result.column_total("bill_b2_detail_A3") == Decimal("50.00")


def test_combine_uses_split_bill_label(config):
    bills = [_bill("b1", "ascensore", "100", subtype_id="straordinaria", label="vecchia etichetta")]
    result = combine_bills(config, bills)
    assert result.columns[0].label == "Ascensore • Straordinaria"


def test_combine_participant_missing_from_one_bill():
    data = sample_config_data()
    data["billTypes"][3]["rule"]["percents"] = [{"condoId": "c1", "weight": 1}]
    config = load_config(data)
    bills = [_bill("b1", "acqua", "10"), _bill("b2", "luce", "100")]
    result = combine_bills(config, bills)

    bianchi = next(row for row in result.rows if row.condo_id == "c2")
    assert "bill_b1" not in bianchi.allocations
    assert bianchi.total == Decimal("25.60")
    rossi = next(row for row in result.rows if row.condo_id == "c1")
    assert rossi.total == Decimal("26.80")


def test_combine_propagates_bad_bill(config):
    bills = [_bill("b1", "luce", "100"), _bill("b2", "gas", "50"), _bill("b3", "pulizie", "200")]
    with pytest.raises(NotFoundError):
        combine_bills(config, bills)


def test_combine_rejects_duplicate_bill_ids(config):
    with pytest.raises(ValueError):
        combine_bills(config, [_bill("b1", "luce", "100"), _bill("b1", "pulizie", "200")])
