from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, assert_never

from condosplit.models import (
    AppConfig,
    BillType,
    CustomPercentRule,
    DistributionRule,
    SingleTableRule,
    WeightedTablesRule,
)


class SplitError(Exception):
    pass


class NotFoundError(SplitError, LookupError):
    pass


class ConfigError(SplitError, ValueError):
    pass


@dataclass(slots=True)
class RuleResolution:
    bill_type: BillType
    rule: DistributionRule
    subtype_name: Optional[str] = None

    @property
    def bill_label(self) -> str:
        if self.subtype_name:
            return f"{self.bill_type.name} • {self.subtype_name}"
        return self.bill_type.name


def resolve_rule(config: AppConfig, bill_type_id: str, subtype_id: Optional[str] = None) -> RuleResolution:
    bill_type = config.find_bill_type(bill_type_id)
    if bill_type is None:
        raise NotFoundError(f"Tipo di spesa non trovato: {bill_type_id}")

    if bill_type.requires_subtype:
        subtype = bill_type.find_subtype(subtype_id)
        if subtype is None and bill_type.subtypes:
            subtype = bill_type.subtypes[0]
        if subtype is None:
            raise ConfigError(f"Sottotipo non configurato per {bill_type.name}")
        return RuleResolution(bill_type=bill_type, rule=subtype.rule, subtype_name=subtype.name)

    if bill_type.rule is None:
        raise ConfigError(f"Regola di distribuzione mancante per {bill_type.name}")

    return RuleResolution(bill_type=bill_type, rule=bill_type.rule)


def percent(share: Decimal) -> int:
    """Fraction to a whole percent, rounding half up (0.125 -> 13)."""
    return int((share * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def describe_rule(rule: DistributionRule) -> str:
    if rule.description:
        return rule.description

    match rule:
        case SingleTableRule():
            return f"Tabella {rule.table_id}"
        case WeightedTablesRule():
            total = rule.total_weight()
            parts = []
            for entry in rule.tables:
                share = entry.weight / total if total else entry.weight
                parts.append(f"{percent(share)}% {entry.table_id}")
            return " + ".join(parts)
        case CustomPercentRule():
            return "Percentuale personalizzata"
        case _:
            assert_never(rule)
