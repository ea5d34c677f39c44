from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel


def _float_as_text(value: object) -> object:
    # 0.2 must become Decimal("0.2"), not its binary expansion
    if isinstance(value, float):
        return repr(value)
    return value


def _json_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Serialized as a plain JSON number so exported files keep the original shape.
Weight = Annotated[
    Decimal,
    BeforeValidator(_float_as_text),
    Field(ge=0),
    PlainSerializer(_json_number, return_type=Union[int, float], when_used="json"),
]


class ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class Condo(ConfigModel):
    id: str = Field(min_length=1)
    name: str
    note: Optional[str] = None


class WeightEntry(ConfigModel):
    condo_id: str
    value: Weight


class WeightTable(ConfigModel):
    id: str = Field(min_length=1)
    name: str
    entries: tuple[WeightEntry, ...] = ()

    def total_weight(self) -> Decimal:
        return sum((entry.value for entry in self.entries), Decimal(0))


class WeightedTable(ConfigModel):
    table_id: str
    weight: Weight


class CustomPercent(ConfigModel):
    condo_id: str
    weight: Weight


class SingleTableRule(ConfigModel):
    kind: Literal["single_table"] = "single_table"
    table_id: str
    description: Optional[str] = None


class WeightedTablesRule(ConfigModel):
    kind: Literal["weighted_tables"] = "weighted_tables"
    tables: tuple[WeightedTable, ...] = ()
    description: Optional[str] = None

    def total_weight(self) -> Decimal:
        return sum((t.weight for t in self.tables), Decimal(0))


class CustomPercentRule(ConfigModel):
    kind: Literal["custom_percent"] = "custom_percent"
    percents: tuple[CustomPercent, ...] = ()
    description: Optional[str] = None

    def total_weight(self) -> Decimal:
        return sum((p.weight for p in self.percents), Decimal(0))


DistributionRule = Annotated[
    Union[SingleTableRule, WeightedTablesRule, CustomPercentRule],
    Field(discriminator="kind"),
]


class BillSubtype(ConfigModel):
    id: str = Field(min_length=1)
    name: str
    rule: DistributionRule


class BillType(ConfigModel):
    id: str = Field(min_length=1)
    name: str
    requires_subtype: bool = False
    rule: Optional[DistributionRule] = None
    subtypes: tuple[BillSubtype, ...] = ()
    note: Optional[str] = None

    def find_subtype(self, subtype_id: Optional[str]) -> Optional[BillSubtype]:
        return next((s for s in self.subtypes if s.id == subtype_id), None)


class AppConfig(ConfigModel):
    """Participants, weight tables and the bill-type rule tree.

    Instances are immutable snapshots: editing produces a new config via
    ``model_copy(update=...)``.
    """

    condomini: tuple[Condo, ...]
    tables: tuple[WeightTable, ...]
    bill_types: tuple[BillType, ...]
    owner_name: Optional[str] = None

    def find_condo(self, condo_id: str) -> Optional[Condo]:
        return next((c for c in self.condomini if c.id == condo_id), None)

    def find_table(self, table_id: str) -> Optional[WeightTable]:
        return next((t for t in self.tables if t.id == table_id), None)

    def find_bill_type(self, bill_type_id: str) -> Optional[BillType]:
        return next((bt for bt in self.bill_types if bt.id == bill_type_id), None)


@dataclass(slots=True)
class BillRequest:
    bill_type_id: str
    amount: Decimal
    subtype_id: Optional[str] = None
    memo: Optional[str] = None


@dataclass(slots=True)
class SavedBill:
    id: str
    bill_type_id: str
    bill_label: str
    amount: Decimal
    subtype_id: Optional[str] = None
    memo: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, request: BillRequest, bill_label: str) -> "SavedBill":
        return cls(
            id=uuid4().hex[:12],
            bill_type_id=request.bill_type_id,
            bill_label=bill_label,
            amount=request.amount,
            subtype_id=request.subtype_id,
            memo=request.memo,
        )

    def as_request(self) -> BillRequest:
        return BillRequest(
            bill_type_id=self.bill_type_id,
            amount=self.amount,
            subtype_id=self.subtype_id,
            memo=self.memo,
        )


@dataclass(slots=True)
class ResultColumn:
    id: str
    label: str


@dataclass(slots=True)
class ResultRow:
    condo_id: str
    condo_name: str
    allocations: dict[str, Decimal] = field(default_factory=dict)
    total: Decimal = Decimal("0.00")


@dataclass(slots=True)
class SplitResult:
    columns: list[ResultColumn]
    rows: list[ResultRow]
    total: Decimal
    amount: Decimal
    rule_label: str
    bill_label: str

    def column_total(self, column_id: str) -> Decimal:
        return sum((row.allocations.get(column_id, Decimal(0)) for row in self.rows), Decimal("0.00"))

    def totals_by_condo(self) -> dict[str, Decimal]:
        return {row.condo_id: row.total for row in self.rows}


@dataclass(slots=True)
class CombinedResult:
    bills: list[SavedBill]
    columns: list[ResultColumn]
    rows: list[ResultRow]
    total: Decimal

    def column_total(self, column_id: str) -> Decimal:
        return sum((row.allocations.get(column_id, Decimal(0)) for row in self.rows), Decimal("0.00"))

    def totals_by_condo(self) -> dict[str, Decimal]:
        return {row.condo_id: row.total for row in self.rows}
