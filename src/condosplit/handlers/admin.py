from __future__ import annotations

import json
from html import escape

from aiogram import Bot, F, Router
from aiogram.filters import Command
from aiogram.types import BufferedInputFile, Message

from condosplit.db.repo import get_global_repository
from condosplit.logging import get_logger
from condosplit.services.config_io import dump_config_json, merge_imported
from condosplit.services.rules import ConfigError
from condosplit.services.validation import validate_config

admin_router = Router()

log = get_logger(__name__)

MAX_IMPORT_BYTES = 1_000_000


@admin_router.message(Command("esporta"))
async def cmd_esporta(message: Message) -> None:
    config = await get_global_repository().load_config()
    document = BufferedInputFile(dump_config_json(config).encode("utf-8"), filename="condo-config.json")
    await message.answer_document(document, caption="Configurazione corrente")


@admin_router.message(Command("importa"), F.document)
async def cmd_importa_document(message: Message, bot: Bot) -> None:
    document = message.document
    if document.file_size and document.file_size > MAX_IMPORT_BYTES:
        await message.answer("❌ File troppo grande")
        return

    buffer = await bot.download(document)
    try:
        data = json.loads(buffer.read().decode("utf-8"))
        config = merge_imported(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        await message.answer(f"❌ JSON non valido: {escape(str(exc))}")
        return
    except ConfigError as exc:
        await message.answer(f"❌ {escape(str(exc))}")
        return

    repo = get_global_repository()
    await repo.save_config(config)
    log.info("config.imported", user_id=message.from_user.id if message.from_user else None)

    text = (
        f"✅ Configurazione importata: {len(config.condomini)} condomini, "
        f"{len(config.tables)} tabelle, {len(config.bill_types)} tipi di spesa."
    )
    warnings = validate_config(config)
    if warnings:
        text += "\n\n<b>⚠️ Da controllare</b>\n" + "\n".join(f"• {escape(str(w))}" for w in warnings)
    await message.answer(text)


@admin_router.message(Command("importa"))
async def cmd_importa(message: Message) -> None:
    await message.answer("Invia il file JSON della configurazione con didascalia /importa")


@admin_router.message(Command("ripristina"))
async def cmd_ripristina(message: Message) -> None:
    await get_global_repository().reset_to_sample()
    log.info("config.reset", user_id=message.from_user.id if message.from_user else None)
    await message.answer("✅ Configurazione di esempio ripristinata")
