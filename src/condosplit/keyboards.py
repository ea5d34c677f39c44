from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from condosplit.models import AppConfig, BillType, SavedBill
from condosplit.services.report import format_currency


def build_main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="➕ Nuova spesa", callback_data="menu:newbill")],
            [InlineKeyboardButton(text="📊 Riepilogo", callback_data="menu:summary")],
            [InlineKeyboardButton(text="📋 Tipi di spesa", callback_data="menu:types")],
            [InlineKeyboardButton(text="ℹ️ Aiuto", callback_data="menu:help")],
        ]
    )


def build_bill_types_keyboard(config: AppConfig) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(text=bill_type.name, callback_data=f"bt:{bill_type.id}")]
        for bill_type in config.bill_types
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_subtypes_keyboard(bill_type: BillType) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(text=subtype.name, callback_data=f"st:{bill_type.id}:{subtype.id}")]
        for subtype in bill_type.subtypes
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)


def build_summary_keyboard(bills: Sequence[SavedBill], *, details: bool = False) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = [
        [
            InlineKeyboardButton(
                text=f"✖ {index}. {bill.bill_label} {format_currency(bill.amount)}",
                callback_data=f"rm:{bill.id}",
            )
        ]
        for index, bill in enumerate(bills, start=1)
    ]

    if bills:
        rows.append(
            [
                InlineKeyboardButton(
                    text="· Dettagli" if details else "Dettagli",
                    callback_data="details",
                ),
                InlineKeyboardButton(text="Svuota", callback_data="clear"),
            ]
        )
    rows.append([InlineKeyboardButton(text="➕ Nuova spesa", callback_data="menu:newbill")])
    return InlineKeyboardMarkup(inline_keyboard=rows)
