from __future__ import annotations

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message

from condosplit.db.repo import get_global_repository
from condosplit.keyboards import build_main_menu_keyboard
from condosplit.state import state

basic_router = Router()

HELP_TEXT = (
    "<b>📖 Comandi</b>\n\n"
    "<b>Spese:</b>\n"
    "/spesa - nuova spesa da ripartire\n"
    "/riepilogo - tabella riepilogativa delle spese inserite\n"
    "/rimuovi [n] - rimuovi la spesa n dal riepilogo\n"
    "/svuota - rimuovi tutte le spese\n"
    "/tipi - tipi di spesa e regole di ripartizione\n\n"
    "<b>Configurazione:</b>\n"
    "/esporta - scarica la configurazione in JSON\n"
    "/importa - invia un file JSON con didascalia /importa\n"
    "/ripristina - torna alla configurazione di esempio\n\n"
    "<b>Formato:</b>\n"
    "• /spesa [tipo][/sottotipo] [importo] [memo]\n"
    "• es. /spesa luce 120,50 bolletta marzo"
)


async def _welcome_text(first_name: str) -> str:
    config = await get_global_repository().load_config()
    owner = f" di {escape(config.owner_name)}" if config.owner_name else ""
    return (
        f"👋 Ciao, {escape(first_name)}!\n\n"
        f"Ripartisco le spese condominiali{owner} secondo le tabelle millesimali.\n\n"
        "Scegli un'azione:"
    )


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    state.pop_pending(user.id)
    await message.answer(await _welcome_text(user.first_name), reply_markup=build_main_menu_keyboard())


@basic_router.callback_query(F.data == "menu:main")
async def cb_main_menu(callback: CallbackQuery) -> None:
    user = callback.from_user
    state.pop_pending(user.id)
    await callback.message.edit_text(
        await _welcome_text(user.first_name),
        reply_markup=build_main_menu_keyboard(),
    )
    await callback.answer()


@basic_router.callback_query(F.data == "menu:help")
async def cb_help_menu(callback: CallbackQuery) -> None:
    keyboard = InlineKeyboardMarkup(inline_keyboard=[
        [InlineKeyboardButton(text="◀️ Menu", callback_data="menu:main")]
    ])
    await callback.message.edit_text(HELP_TEXT, reply_markup=keyboard)
    await callback.answer()


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)
