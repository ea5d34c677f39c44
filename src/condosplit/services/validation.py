from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, assert_never

from condosplit.models import (
    AppConfig,
    CustomPercentRule,
    DistributionRule,
    SingleTableRule,
    WeightedTablesRule,
)
from condosplit.services.rules import percent

TOLERANCE = Decimal("0.001")


@dataclass(slots=True)
class RuleWarning:
    message: str
    bill_type_id: Optional[str] = None
    subtype_id: Optional[str] = None

    def __str__(self) -> str:
        scope = "/".join(part for part in (self.bill_type_id, self.subtype_id) if part)
        return f"{scope}: {self.message}" if scope else self.message


def check_rule(config: AppConfig, rule: DistributionRule) -> list[str]:
    messages: list[str] = []

    match rule:
        case SingleTableRule():
            if config.find_table(rule.table_id) is None:
                messages.append(f"tabella {rule.table_id} inesistente")

        case WeightedTablesRule():
            for entry in rule.tables:
                if config.find_table(entry.table_id) is None:
                    messages.append(f"tabella {entry.table_id} inesistente")
            total = rule.total_weight()
            if not rule.tables:
                messages.append("nessuna tabella indicata")
            elif not total:
                messages.append("somma dei pesi pari a zero, la spesa non viene ripartita")
            elif abs(total - 1) > TOLERANCE:
                messages.append(f"le percentuali sommano a {percent(total)}% invece di 100%")

        case CustomPercentRule():
            for entry in rule.percents:
                if config.find_condo(entry.condo_id) is None:
                    messages.append(f"condominio {entry.condo_id} inesistente")
            total = rule.total_weight()
            if not total:
                messages.append("somma delle percentuali pari a zero, la spesa non viene ripartita")
            elif abs(total - 100) > TOLERANCE:
                messages.append(f"le percentuali sommano a {total.normalize():f}% invece di 100%")

        case _:
            assert_never(rule)

    return messages


def validate_config(config: AppConfig) -> list[RuleWarning]:
    """Problems the editing surface should show; the engine tolerates all of them."""
    warnings: list[RuleWarning] = []

    for table in config.tables:
        if table.entries and not table.total_weight():
            warnings.append(RuleWarning(f"tabella {table.id} con tutti i pesi a zero"))
        counts = Counter(entry.condo_id for entry in table.entries)
        for condo_id, count in counts.items():
            if config.find_condo(condo_id) is None:
                warnings.append(RuleWarning(f"tabella {table.id}: condominio {condo_id} inesistente"))
            if count > 1:
                warnings.append(RuleWarning(f"tabella {table.id}: {condo_id} compare {count} volte, vale l'ultimo"))

    for bill_type in config.bill_types:
        if bill_type.requires_subtype:
            if not bill_type.subtypes:
                warnings.append(RuleWarning("nessun sottotipo configurato", bill_type.id))
            for subtype in bill_type.subtypes:
                for message in check_rule(config, subtype.rule):
                    warnings.append(RuleWarning(message, bill_type.id, subtype.id))
        elif bill_type.rule is None:
            warnings.append(RuleWarning("regola di distribuzione mancante", bill_type.id))
        else:
            for message in check_rule(config, bill_type.rule):
                warnings.append(RuleWarning(message, bill_type.id))

    return warnings
