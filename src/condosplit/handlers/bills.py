from __future__ import annotations

from html import escape
from typing import Optional

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message

from condosplit.config import get_settings
from condosplit.db.repo import get_global_repository
from condosplit.keyboards import build_bill_types_keyboard, build_subtypes_keyboard, build_summary_keyboard
from condosplit.logging import get_logger
from condosplit.models import AppConfig, BillRequest, SavedBill, SplitResult
from condosplit.services.combine import combine_bills
from condosplit.services.report import render_bill_list, render_combined, render_split
from condosplit.services.rules import SplitError, describe_rule
from condosplit.services.split import calculate_split
from condosplit.services.validation import validate_config
from condosplit.state import PendingBill, state
from condosplit.utils.parse import parse_amount, parse_bill_command

bills_router = Router()

log = get_logger(__name__)


def _pre(text: str) -> str:
    return f"<pre>{escape(text)}</pre>"


def add_bill(user_id: int, config: AppConfig, request: BillRequest) -> tuple[SavedBill, SplitResult]:
    split = calculate_split(config, request)
    bill = SavedBill.create(request, split.bill_label)
    state.add_bill(user_id, bill)
    log.info("bill.added", user_id=user_id, bill_id=bill.id, bill_type_id=bill.bill_type_id, amount=str(bill.amount))
    return bill, split


def build_summary_text(config: AppConfig, user_id: int) -> str:
    bills = state.get_bills(user_id)
    try:
        combined = combine_bills(config, bills)
    except SplitError as exc:
        log.warning("bills.combine_failed", user_id=user_id, error=str(exc))
        return (
            f"❌ Impossibile calcolare il riepilogo: {escape(str(exc))}\n\n"
            "Rimuovi la spesa non valida o correggi la configurazione."
        )

    text = _pre(render_combined(combined, details=state.show_details(user_id)))
    if bills:
        text += "\n" + escape(render_bill_list(bills, get_settings().zoneinfo))
    return text


async def _reply_summary(message: Message, user_id: int) -> None:
    config = await get_global_repository().load_config()
    await message.answer(
        build_summary_text(config, user_id),
        reply_markup=build_summary_keyboard(state.get_bills(user_id), details=state.show_details(user_id)),
    )


async def _refresh_summary(callback: CallbackQuery) -> None:
    user_id = callback.from_user.id
    config = await get_global_repository().load_config()
    await callback.message.edit_text(
        build_summary_text(config, user_id),
        reply_markup=build_summary_keyboard(state.get_bills(user_id), details=state.show_details(user_id)),
    )


async def _submit_bill(message: Message, user_id: int, request: BillRequest) -> None:
    config = await get_global_repository().load_config()
    try:
        _, split = add_bill(user_id, config, request)
    except SplitError as exc:
        await message.answer(f"❌ {escape(str(exc))}")
        return

    await message.answer(
        "✅ Spesa aggiunta al riepilogo\n\n" + _pre(render_split(split)),
        reply_markup=build_summary_keyboard(state.get_bills(user_id), details=state.show_details(user_id)),
    )


@bills_router.message(Command("spesa"))
async def cmd_spesa(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return

    if not command.args:
        config = await get_global_repository().load_config()
        await message.answer("Scegli il tipo di spesa:", reply_markup=build_bill_types_keyboard(config))
        return

    try:
        parsed = parse_bill_command(command.args)
    except ValueError as exc:
        await message.answer(escape(str(exc)))
        return

    request = BillRequest(
        bill_type_id=parsed.bill_type_id,
        subtype_id=parsed.subtype_id,
        amount=parsed.amount,
        memo=parsed.memo,
    )
    await _submit_bill(message, user.id, request)


@bills_router.callback_query(F.data == "menu:newbill")
async def cb_new_bill(callback: CallbackQuery) -> None:
    config = await get_global_repository().load_config()
    state.pop_pending(callback.from_user.id)
    await callback.message.edit_text("Scegli il tipo di spesa:", reply_markup=build_bill_types_keyboard(config))
    await callback.answer()


async def _ask_amount(callback: CallbackQuery, pending: PendingBill, label: str) -> None:
    state.set_pending(callback.from_user.id, pending)
    await callback.message.edit_text(
        f"<b>{escape(label)}</b>\n\nScrivi l'importo in euro, ad esempio <code>120,50 bolletta marzo</code>."
    )
    await callback.answer()


@bills_router.callback_query(F.data.startswith("bt:"))
async def cb_bill_type(callback: CallbackQuery) -> None:
    bill_type_id = callback.data.split(":", 1)[1]
    config = await get_global_repository().load_config()
    bill_type = config.find_bill_type(bill_type_id)
    if bill_type is None:
        await callback.answer("Tipo di spesa non trovato", show_alert=True)
        return

    if bill_type.requires_subtype and bill_type.subtypes:
        await callback.message.edit_text(
            f"<b>{escape(bill_type.name)}</b>\n\nScegli il sottotipo:",
            reply_markup=build_subtypes_keyboard(bill_type),
        )
        await callback.answer()
        return

    await _ask_amount(callback, PendingBill(bill_type_id=bill_type.id), bill_type.name)


@bills_router.callback_query(F.data.startswith("st:"))
async def cb_subtype(callback: CallbackQuery) -> None:
    _, bill_type_id, subtype_id = callback.data.split(":", 2)
    config = await get_global_repository().load_config()
    bill_type = config.find_bill_type(bill_type_id)
    subtype = bill_type.find_subtype(subtype_id) if bill_type else None
    if bill_type is None or subtype is None:
        await callback.answer("Sottotipo non trovato", show_alert=True)
        return

    await _ask_amount(
        callback,
        PendingBill(bill_type_id=bill_type.id, subtype_id=subtype.id),
        f"{bill_type.name} • {subtype.name}",
    )


@bills_router.message(F.text & ~F.text.startswith("/"))
async def handle_amount(message: Message) -> None:
    user = message.from_user
    if not user or not message.text:
        return

    pending = state.get_pending(user.id)
    if pending is None:
        await message.answer("Usa /spesa per inserire una nuova spesa o /help per l'elenco dei comandi.")
        return

    raw_amount, _, memo = message.text.strip().partition(" ")
    amount = parse_amount(raw_amount)
    if amount is None or amount <= 0:
        await message.answer("Importo non valido, riprova (es. 120,50).")
        return

    state.pop_pending(user.id)
    request = BillRequest(
        bill_type_id=pending.bill_type_id,
        subtype_id=pending.subtype_id,
        amount=amount,
        memo=memo.strip() or None,
    )
    await _submit_bill(message, user.id, request)


@bills_router.message(Command("riepilogo"))
async def cmd_riepilogo(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    await _reply_summary(message, user.id)


@bills_router.callback_query(F.data == "menu:summary")
async def cb_summary(callback: CallbackQuery) -> None:
    await _refresh_summary(callback)
    await callback.answer()


@bills_router.callback_query(F.data.startswith("rm:"))
async def cb_remove_bill(callback: CallbackQuery) -> None:
    bill_id = callback.data.split(":", 1)[1]
    removed = state.remove_bill(callback.from_user.id, bill_id)
    if removed is None:
        # the summary already reflects this; editing it again is rejected by Telegram
        await callback.answer("Spesa già rimossa")
        return
    await callback.answer("Spesa rimossa")
    await _refresh_summary(callback)


@bills_router.callback_query(F.data == "details")
async def cb_toggle_details(callback: CallbackQuery) -> None:
    state.toggle_details(callback.from_user.id)
    await _refresh_summary(callback)
    await callback.answer()


@bills_router.callback_query(F.data == "clear")
async def cb_clear(callback: CallbackQuery) -> None:
    state.clear_bills(callback.from_user.id)
    await _refresh_summary(callback)
    await callback.answer("Riepilogo svuotato")


@bills_router.message(Command("rimuovi"))
async def cmd_rimuovi(message: Message, command: CommandObject) -> None:
    user = message.from_user
    if not user:
        return

    position: Optional[int] = None
    if command.args and command.args.strip().isdigit():
        position = int(command.args.strip())
    if position is None:
        await message.answer("Uso: /rimuovi [n], con n il numero della spesa nel riepilogo")
        return

    removed = state.remove_bill_at(user.id, position)
    if removed is None:
        await message.answer("Nessuna spesa con questo numero")
        return
    await _reply_summary(message, user.id)


@bills_router.message(Command("svuota"))
async def cmd_svuota(message: Message) -> None:
    user = message.from_user
    if not user:
        return
    state.clear_bills(user.id)
    await message.answer("Riepilogo svuotato")


def build_bill_types_text(config: AppConfig) -> str:
    lines = ["<b>Tipi di spesa</b>", ""]
    for bill_type in config.bill_types:
        if bill_type.requires_subtype:
            lines.append(f"• <code>{escape(bill_type.id)}</code> {escape(bill_type.name)}")
            for subtype in bill_type.subtypes:
                lines.append(
                    f"    – <code>{escape(bill_type.id)}/{escape(subtype.id)}</code> "
                    f"{escape(subtype.name)}: {escape(describe_rule(subtype.rule))}"
                )
        else:
            rule = escape(describe_rule(bill_type.rule)) if bill_type.rule else "nessuna regola"
            lines.append(f"• <code>{escape(bill_type.id)}</code> {escape(bill_type.name)}: {rule}")

    warnings = validate_config(config)
    if warnings:
        lines.extend(["", "<b>⚠️ Da controllare</b>"])
        lines.extend(f"• {escape(str(warning))}" for warning in warnings)
    return "\n".join(lines)


@bills_router.message(Command("tipi"))
async def cmd_tipi(message: Message) -> None:
    config = await get_global_repository().load_config()
    await message.answer(build_bill_types_text(config))


@bills_router.callback_query(F.data == "menu:types")
async def cb_types(callback: CallbackQuery) -> None:
    config = await get_global_repository().load_config()
    await callback.message.edit_text(build_bill_types_text(config), reply_markup=build_bill_types_keyboard(config))
    await callback.answer()
