from datetime import datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from condosplit.models import BillRequest, SavedBill
from condosplit.services.combine import combine_bills
from condosplit.services.report import (
    format_currency,
    format_number,
    render_bill_list,
    render_combined,
    render_split,
)
from condosplit.services.split import calculate_split


def test_format_number_italian():
    assert format_number(Decimal("1234.56")) == "1.234,56"
    assert format_number(0) == "0,00"
    assert format_number(Decimal("-1234567.891")) == "-1.234.567,89"


def test_format_currency():
    assert format_currency(Decimal("1234.5")) == "1.234,50 €"
    assert format_currency(Decimal("0.005")) == "0,01 €"


def test_render_split(config):
    result = calculate_split(config, BillRequest(bill_type_id="luce", amount=Decimal("100")))
    text = render_split(result)

    assert text.splitlines()[0] == "Luce"
    assert "Importo: 100,00 €" in text
    assert "Tabella B1 (60%)" in text
    rossi = next(line for line in text.splitlines() if line.startswith("Rossi"))
    assert rossi.split()[-1] == "16,80"
    assert text.splitlines()[-1].split()[-1] == "100,00"


def test_render_split_single_column_has_no_extra_total(config):
    result = calculate_split(config, BillRequest(bill_type_id="ascensore", amount=Decimal("100")))
    header = render_split(result).splitlines()[4]
    assert header.split() == ["Condominio", "Tabella", "B2"]


def test_render_combined(config):
    bills = [
        SavedBill(id="b1", bill_type_id="luce", bill_label="Luce", amount=Decimal("100")),
        SavedBill(id="b2", bill_type_id="pulizie", bill_label="Pulizie", amount=Decimal("200")),
    ]
    result = combine_bills(config, bills)

    text = render_combined(result)
    assert text.startswith("Riepilogo di 2 spese, totale 300,00 €")
    assert "Tabella A3" not in text
    neri = next(line for line in text.splitlines() if line.startswith("Neri"))
    assert neri.split()[1:] == ["37,00", "75,50", "112,50"]

    detailed = render_combined(result, details=True)
    assert "Tabella A3 (20%)" in detailed
    assert "Tabella A3 (25%)" in detailed


def test_render_combined_empty(config):
    assert render_combined(combine_bills(config, [])) == "Nessuna spesa inserita."


def test_render_bill_list():
    bills = [
        SavedBill(
            id="b1",
            bill_type_id="luce",
            bill_label="Luce",
            amount=Decimal("100"),
            memo="marzo",
            created_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        ),
    ]
    text = render_bill_list(bills, ZoneInfo("Europe/Rome"))
    assert text == "1. Luce: 100,00 € (marzo) - 01.03.2026 10:30"
    assert render_bill_list([], ZoneInfo("Europe/Rome")) == "Nessuna spesa inserita."
