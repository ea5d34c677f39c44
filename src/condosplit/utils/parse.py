from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional


_AMOUNT_RE = re.compile(r"^[+-]?(\d+([.,]\d*)?|[.,]\d+)$")


@dataclass(slots=True)
class BillCommand:
    bill_type_id: str
    amount: Decimal
    subtype_id: Optional[str] = None
    memo: Optional[str] = None


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """
    Parse a typed amount, Italian style or not.

    - "120"       -> 120
    - "120,50"    -> 120.50
    - "120.50"    -> 120.50
    - "1.234,56"  -> 1234.56  (dot as thousands separator when a comma follows)
    - "1 234,56"  -> 1234.56
    - "", "abc"   -> None
    """
    if not raw:
        return None

    text = re.sub(r"\s", "", raw).replace("€", "")
    if "," in text and "." in text:
        text = text.replace(".", "")
    if not _AMOUNT_RE.match(text):
        return None

    try:
        value = Decimal(text.replace(",", "."))
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_bill_command(text: str) -> BillCommand:
    """
    Parse the arguments of /spesa.

    Format: "<tipo>[/<sottotipo>] <importo> [memo...]", e.g.
    "luce 120,50", "ascensore/straordinaria 300 rifacimento cabina".
    """
    parts = text.strip().split(maxsplit=2)
    if len(parts) < 2:
        raise ValueError("Uso: /spesa <tipo>[/<sottotipo>] <importo> [memo]")

    kind, raw_amount = parts[0], parts[1]
    memo = parts[2].strip() if len(parts) > 2 else None

    bill_type_id, _, subtype_id = kind.partition("/")
    if not bill_type_id:
        raise ValueError("Tipo di spesa mancante")

    amount = parse_amount(raw_amount)
    if amount is None or amount <= 0:
        raise ValueError("Importo non valido")

    return BillCommand(
        bill_type_id=bill_type_id,
        amount=amount,
        subtype_id=subtype_id or None,
        memo=memo or None,
    )
