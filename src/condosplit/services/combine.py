from __future__ import annotations

from decimal import Decimal
from typing import Sequence

from condosplit.logging import get_logger
from condosplit.models import AppConfig, CombinedResult, ResultColumn, ResultRow, SavedBill
from condosplit.services.allocation import round2
from condosplit.services.split import calculate_split, sort_rows

TOTAL_COLUMN = "total"
TOTAL_LABEL = "Totale"
DETAIL_MARKER = "_detail_"

log = get_logger(__name__)


def bill_column_id(bill: SavedBill) -> str:
    return f"bill_{bill.id}"


def detail_column_id(bill_column: str, column_id: str) -> str:
    return f"{bill_column}{DETAIL_MARKER}{column_id}"


def is_detail_column(column_id: str) -> bool:
    return DETAIL_MARKER in column_id


def combine_bills(config: AppConfig, bills: Sequence[SavedBill]) -> CombinedResult:
    """Merge the splits of ``bills`` into one table.

    Each bill contributes a column with its per-participant totals, followed
    by one detail column per column of its own split. A "total" column is
    added only when there are at least two bills. Any failing bill fails
    the whole combination.
    """
    if not bills:
        return CombinedResult(bills=[], columns=[], rows=[], total=Decimal("0.00"))

    bill_ids = [bill.id for bill in bills]
    if len(set(bill_ids)) != len(bill_ids):
        raise ValueError("bill ids must be unique")

    rows: dict[str, ResultRow] = {}
    columns: list[ResultColumn] = []
    bill_columns: list[str] = []
    total_amount = Decimal("0.00")

    for bill in bills:
        split = calculate_split(config, bill.as_request())
        column_id = bill_column_id(bill)
        bill_columns.append(column_id)
        columns.append(ResultColumn(id=column_id, label=split.bill_label))
        total_amount += round2(bill.amount)

        details: dict[str, str] = {}
        for col in split.columns:
            detail_id = detail_column_id(column_id, col.id)
            details[detail_id] = col.id
            columns.append(ResultColumn(id=detail_id, label=col.label))

        for split_row in split.rows:
            row = rows.get(split_row.condo_id)
            if row is None:
                row = rows[split_row.condo_id] = ResultRow(
                    condo_id=split_row.condo_id,
                    condo_name=split_row.condo_name,
                )
            row.allocations[column_id] = split_row.total
            for detail_id, source_id in details.items():
                row.allocations[detail_id] = split_row.allocations.get(source_id, Decimal("0.00"))

    for row in rows.values():
        row.total = sum((row.allocations.get(col, Decimal("0.00")) for col in bill_columns), Decimal("0.00"))

    if len(bills) > 1:
        columns.append(ResultColumn(id=TOTAL_COLUMN, label=TOTAL_LABEL))
        for row in rows.values():
            row.allocations[TOTAL_COLUMN] = row.total

    log.debug("bills.combined", bills=len(bills), columns=len(columns), rows=len(rows))

    return CombinedResult(
        bills=list(bills),
        columns=columns,
        rows=sort_rows(rows.values()),
        total=total_amount,
    )
