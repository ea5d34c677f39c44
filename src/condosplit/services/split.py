from __future__ import annotations

import unicodedata
from decimal import Decimal
from typing import Iterable, Mapping, Sequence, assert_never

from condosplit.logging import get_logger
from condosplit.models import (
    AppConfig,
    BillRequest,
    Condo,
    CustomPercentRule,
    ResultColumn,
    ResultRow,
    SingleTableRule,
    SplitResult,
    WeightedTablesRule,
    WeightTable,
)
from condosplit.services.allocation import allocate, round2, to_decimal
from condosplit.services.rules import NotFoundError, describe_rule, percent, resolve_rule

PERCENT_COLUMN = "percent"
PERCENT_LABEL = "Percentuale"

log = get_logger(__name__)


def display_sort_key(name: str) -> tuple[str, str]:
    # accent- and case-insensitive first, raw name to keep the order total
    folded = "".join(ch for ch in unicodedata.normalize("NFKD", name) if not unicodedata.combining(ch))
    return folded.casefold(), name


def sort_rows(rows: Iterable[ResultRow]) -> list[ResultRow]:
    return sorted(rows, key=lambda row: display_sort_key(row.condo_name))


def _require_table(config: AppConfig, table_id: str) -> WeightTable:
    table = config.find_table(table_id)
    if table is None:
        raise NotFoundError(f"Tabella {table_id} non trovata")
    return table


def _known_weights(
    pairs: Iterable[tuple[str, Decimal]],
    condos: Mapping[str, Condo],
    source: str,
) -> list[tuple[str, Decimal]]:
    known: list[tuple[str, Decimal]] = []
    for condo_id, value in pairs:
        if condo_id not in condos:
            log.warning("split.unknown_condo", condo_id=condo_id, source=source)
            continue
        known.append((condo_id, value))
    return known


def _allocate_into(
    rows: dict[str, ResultRow],
    condos: Mapping[str, Condo],
    column_id: str,
    weights: Sequence[tuple[str, Decimal]],
    amount: Decimal,
) -> None:
    if not sum((value for _, value in weights), Decimal(0)):
        log.debug("split.zero_weight", column_id=column_id)
        return

    for condo_id, share in allocate(weights, amount).items():
        row = rows.get(condo_id)
        if row is None:
            condo = condos[condo_id]
            row = rows[condo_id] = ResultRow(condo_id=condo.id, condo_name=condo.name)
        row.allocations[column_id] = row.allocations.get(column_id, Decimal("0.00")) + share


def _table_weights(table: WeightTable, condos: Mapping[str, Condo]) -> list[tuple[str, Decimal]]:
    return _known_weights(((e.condo_id, e.value) for e in table.entries), condos, table.id)


def calculate_split(config: AppConfig, request: BillRequest) -> SplitResult:
    amount = to_decimal(request.amount)
    if amount <= 0:
        raise ValueError("L'importo deve essere positivo")

    resolution = resolve_rule(config, request.bill_type_id, request.subtype_id)
    rule = resolution.rule
    condos = {condo.id: condo for condo in config.condomini}
    rows: dict[str, ResultRow] = {}
    columns: list[ResultColumn] = []

    match rule:
        case SingleTableRule():
            table = _require_table(config, rule.table_id)
            columns.append(ResultColumn(id=table.id, label=table.name))
            _allocate_into(rows, condos, table.id, _table_weights(table, condos), amount)

        case WeightedTablesRule():
            tables = [(_require_table(config, entry.table_id), entry.weight) for entry in rule.tables]
            total_weight = rule.total_weight()
            if total_weight:
                seen: set[str] = set()
                for table, weight in tables:
                    share = weight / total_weight
                    if table.id not in seen:
                        seen.add(table.id)
                        columns.append(ResultColumn(id=table.id, label=f"{table.name} ({percent(share)}%)"))
                    table_amount = round2(amount * share)
                    _allocate_into(rows, condos, table.id, _table_weights(table, condos), table_amount)
            else:
                log.debug("split.inert_rule", bill_type_id=request.bill_type_id)

        case CustomPercentRule():
            columns.append(ResultColumn(id=PERCENT_COLUMN, label=PERCENT_LABEL))
            weights = _known_weights(((p.condo_id, p.weight) for p in rule.percents), condos, PERCENT_COLUMN)
            _allocate_into(rows, condos, PERCENT_COLUMN, weights, amount)

        case _:
            assert_never(rule)

    for row in rows.values():
        row.total = sum(row.allocations.values(), Decimal("0.00"))

    log.debug(
        "split.calculated",
        bill_type_id=request.bill_type_id,
        subtype_id=request.subtype_id,
        rule_kind=rule.kind,
        amount=str(amount),
        columns=len(columns),
    )

    return SplitResult(
        columns=columns,
        rows=sort_rows(rows.values()),
        total=round2(amount),
        amount=amount,
        rule_label=describe_rule(rule),
        bill_label=resolution.bill_label,
    )
