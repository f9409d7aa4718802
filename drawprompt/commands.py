import logging

import discord

from .generator import DEFAULT_LOCALE, generate_prompt
from .locales import get_msg

log = logging.getLogger(__name__)

EMBED_COLOR_PROMPT = discord.Color.from_rgb(255, 105, 180)


def build_prompt_embed(locale: str, trait: str, hobby: str, obj: str) -> discord.Embed:
    embed = discord.Embed(color=EMBED_COLOR_PROMPT)
    embed.add_field(name=get_msg(locale, "trait", "Trait"), value=trait, inline=True)
    embed.add_field(name=get_msg(locale, "hobby", "Hobby"), value=hobby, inline=True)
    embed.add_field(name=get_msg(locale, "object", "Object"), value=obj, inline=True)
    return embed


async def handle_prompt(interaction: discord.Interaction, *, generate=generate_prompt, logger: logging.Logger = log):
    """Reply to /prompt with a generated triple, or a localized error message."""
    await interaction.response.defer()
    locale = str(interaction.locale) if getattr(interaction, "locale", None) else DEFAULT_LOCALE

    try:
        result = await generate(locale=locale)
    except Exception as e:
        logger.error(f"Error generating prompt: {e}")
        await interaction.followup.send(get_msg(locale, "prompt_error", "Failed to generate prompt"))
        return

    if not result:
        logger.error("Failed to generate prompt")
        await interaction.followup.send(get_msg(locale, "prompt_error", "Failed to generate prompt"))
        return

    trait, hobby, obj = result
    logger.info(f"Generated prompt: {trait}, {hobby}, {obj}")
    await interaction.edit_original_response(embed=build_prompt_embed(locale, trait, hobby, obj))
