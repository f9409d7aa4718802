import asyncio
import functools
import logging
import os
from pathlib import Path
from typing import Any, Optional

import aiosqlite
import discord
import yaml
from discord import app_commands
from discord.ext import commands

from .commands import handle_prompt
from .generator import DEFAULT_CONFIG_FILE, DEFAULT_LOCALE, HISTORY_LIMIT, generate_prompt
from .history import init_db
from .locales import get_msg

# ─── Configuration ───

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s: %(message)s")

CONFIG_FILE = Path(os.environ.get("DRAWPROMPT_CONFIG", "config.yaml"))
DEFAULT_DATABASE = "data/drawprompt.db"


def get_config(filename: str = None) -> dict[str, Any]:
    path = filename or str(CONFIG_FILE)
    with open(path, encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


try:
    config = get_config()
except FileNotFoundError:
    logging.critical(f"Config file not found: {CONFIG_FILE}")
    config = {}

intents = discord.Intents.default()
activity = discord.CustomActivity(name="Thinking up drawing prompts")
discord_bot = commands.Bot(intents=intents, activity=activity, command_prefix=None)

db: Optional[aiosqlite.Connection] = None


# ═══════════════════════════════════════════════════
#  PERMISSION CHECK
# ═══════════════════════════════════════════════════

def is_authorized():
    async def predicate(interaction: discord.Interaction) -> bool:
        permissions = config.get("permissions", {})
        allowed_users = permissions.get("users", {}).get("allowed_ids", [])
        allowed_channels = permissions.get("channels", {}).get("allowed_ids", [])
        if not allowed_users and not allowed_channels:
            return True
        if interaction.user.id in allowed_users:
            return True
        if interaction.guild and interaction.channel_id in allowed_channels:
            return True
        return False

    return app_commands.check(predicate)


# ═══════════════════════════════════════════════════
#  SLASH COMMANDS
# ═══════════════════════════════════════════════════

@discord_bot.tree.command(name="prompt", description="Get a trait, a hobby and an object to draw.")
@is_authorized()
async def prompt_command(interaction: discord.Interaction) -> None:
    generate = functools.partial(
        generate_prompt,
        db=db,
        history_limit=config.get("history_limit", HISTORY_LIMIT),
        config_file_name=config.get("template_file", DEFAULT_CONFIG_FILE),
    )
    await handle_prompt(interaction, generate=generate)


# ═══════════════════════════════════════════════════
#  ERROR HANDLER
# ═══════════════════════════════════════════════════

@discord_bot.tree.error
async def on_app_command_error(interaction: discord.Interaction, error: app_commands.AppCommandError):
    locale = str(interaction.locale) if getattr(interaction, "locale", None) else DEFAULT_LOCALE
    if isinstance(error, app_commands.CheckFailure):
        await interaction.response.send_message(get_msg(locale, "no_permission", "No permission."), ephemeral=True)
    else:
        logging.error(f"Command error: {error}")
        send = interaction.followup.send if interaction.response.is_done() else interaction.response.send_message
        await send(get_msg(locale, "command_error", "An error occurred."))


# ═══════════════════════════════════════════════════
#  STARTUP
# ═══════════════════════════════════════════════════

@discord_bot.event
async def on_ready():
    logging.info(f"Drawprompt bot online: {discord_bot.user} (ID: {discord_bot.user.id})")
    if client_id := config.get("client_id"):
        logging.info(f"Invite: https://discord.com/oauth2/authorize?client_id={client_id}&permissions=2147485696&scope=bot")
    await discord_bot.tree.sync()


async def main():
    global db
    token = config.get("bot_token")
    if not token:
        logging.critical(f"No bot_token in {CONFIG_FILE}")
        return
    db = await init_db(config.get("database", DEFAULT_DATABASE))
    try:
        await discord_bot.start(token)
    finally:
        await db.close()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Drawprompt bot shutting down.")
