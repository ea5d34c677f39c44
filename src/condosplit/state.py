"""Per-user session state of the bot: saved bills and pending selections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from condosplit.models import SavedBill


@dataclass(slots=True)
class PendingBill:
    bill_type_id: str
    subtype_id: Optional[str] = None


class UserStateManager:
    def __init__(self) -> None:
        self._bills: dict[int, list[SavedBill]] = {}
        self._pending: dict[int, PendingBill] = {}
        self._details: dict[int, bool] = {}

    def add_bill(self, user_id: int, bill: SavedBill) -> None:
        self._bills.setdefault(user_id, []).append(bill)

    def get_bills(self, user_id: int) -> list[SavedBill]:
        return list(self._bills.get(user_id, []))

    def remove_bill(self, user_id: int, bill_id: str) -> Optional[SavedBill]:
        bills = self._bills.get(user_id, [])
        for index, bill in enumerate(bills):
            if bill.id == bill_id:
                return bills.pop(index)
        return None

    def remove_bill_at(self, user_id: int, position: int) -> Optional[SavedBill]:
        """Remove by 1-based position, as shown in the bill list."""
        bills = self._bills.get(user_id, [])
        if 1 <= position <= len(bills):
            return bills.pop(position - 1)
        return None

    def clear_bills(self, user_id: int) -> None:
        self._bills.pop(user_id, None)

    def set_pending(self, user_id: int, pending: PendingBill) -> None:
        self._pending[user_id] = pending

    def get_pending(self, user_id: int) -> Optional[PendingBill]:
        return self._pending.get(user_id)

    def pop_pending(self, user_id: int) -> Optional[PendingBill]:
        return self._pending.pop(user_id, None)

    def toggle_details(self, user_id: int) -> bool:
        self._details[user_id] = not self._details.get(user_id, False)
        return self._details[user_id]

    def show_details(self, user_id: int) -> bool:
        return self._details.get(user_id, False)

    def clear_user(self, user_id: int) -> None:
        self._bills.pop(user_id, None)
        self._pending.pop(user_id, None)
        self._details.pop(user_id, None)


state = UserStateManager()
