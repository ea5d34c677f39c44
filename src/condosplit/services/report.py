from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Sequence
from zoneinfo import ZoneInfo

from condosplit.models import CombinedResult, ResultColumn, ResultRow, SavedBill, SplitResult
from condosplit.services.allocation import round2
from condosplit.services.combine import is_detail_column

_TO_ITALIAN = str.maketrans({",": ".", ".": ","})


def format_number(value: Decimal | int | float) -> str:
    return f"{round2(value):,.2f}".translate(_TO_ITALIAN)


def format_currency(value: Decimal | int | float) -> str:
    return f"{format_number(value)} €"


def _render_table(
    columns: Sequence[ResultColumn],
    rows: Iterable[ResultRow],
    *,
    with_total: bool,
) -> str:
    rows = list(rows)
    header = ["Condominio", *(col.label for col in columns)]
    if with_total:
        header.append("Totale")

    body: list[list[str]] = []
    for row in rows:
        line = [row.condo_name, *(format_number(row.allocations.get(col.id, Decimal(0))) for col in columns)]
        if with_total:
            line.append(format_number(row.total))
        body.append(line)

    footer = ["Totale"]
    for col in columns:
        footer.append(format_number(sum((r.allocations.get(col.id, Decimal(0)) for r in rows), Decimal(0))))
    if with_total:
        footer.append(format_number(sum((r.total for r in rows), Decimal(0))))

    table = [header, *body, footer]
    widths = [max(len(line[i]) for line in table) for i in range(len(header))]

    def fmt(line: list[str]) -> str:
        cells = [line[0].ljust(widths[0])]
        cells.extend(cell.rjust(width) for cell, width in zip(line[1:], widths[1:]))
        return "  ".join(cells).rstrip()

    separator = "-" * len(fmt(header))
    return "\n".join([fmt(header), separator, *(fmt(line) for line in body), separator, fmt(footer)])


def render_split(result: SplitResult) -> str:
    lines = [
        result.bill_label,
        f"Regola: {result.rule_label}",
        f"Importo: {format_currency(result.total)}",
        "",
    ]
    if not result.rows:
        lines.append("Nessuna ripartizione: la regola ha pesi tutti a zero.")
    else:
        # a single column already is the total
        lines.append(_render_table(result.columns, result.rows, with_total=len(result.columns) > 1))
    return "\n".join(lines)


def render_combined(result: CombinedResult, *, details: bool = False) -> str:
    if not result.bills:
        return "Nessuna spesa inserita."

    columns = [col for col in result.columns if details or not is_detail_column(col.id)]
    lines = [
        f"Riepilogo di {len(result.bills)} spese, totale {format_currency(result.total)}",
        "",
        _render_table(columns, result.rows, with_total=False),
    ]
    return "\n".join(lines)


def render_bill_list(bills: Sequence[SavedBill], tz: ZoneInfo) -> str:
    if not bills:
        return "Nessuna spesa inserita."

    lines = []
    for index, bill in enumerate(bills, start=1):
        line = f"{index}. {bill.bill_label}: {format_currency(bill.amount)}"
        if bill.memo:
            line += f" ({bill.memo})"
        line += f" - {bill.created_at.astimezone(tz).strftime('%d.%m.%Y %H:%M')}"
        lines.append(line)
    return "\n".join(lines)
