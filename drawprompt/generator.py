import asyncio
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

from .history import fetch_recent, store

load_dotenv()

log = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"
DEFAULT_CONFIG_FILE = "openai.json"
HISTORY_LIMIT = 100
USED_PROMPTS_MARKER = "<USED_PROMPTS>"
CONFIG_DIR = Path(__file__).parent


class ConfigurationError(RuntimeError):
    """The OpenAI client could not be set up from the environment."""


async def _read_text(path: Path) -> str:
    return await asyncio.to_thread(path.read_text, encoding="utf-8")


def _get_openai_client(logger: logging.Logger = log) -> AsyncOpenAI:
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ConfigurationError("OpenAI API key is not set. Please check your .env file.")
    try:
        return AsyncOpenAI(api_key=api_key)
    except Exception as e:
        logger.error(f"Failed to initialize OpenAI client: {e}")
        raise ConfigurationError("Failed to initialize OpenAI client. Please check your configuration.") from e


async def load_template(
    config_dir: Optional[Path] = None,
    config_file_name: str = DEFAULT_CONFIG_FILE,
    *,
    read_file=_read_text,
    logger: logging.Logger = log,
) -> dict[str, Any]:
    """Read the completion request template. Errors are logged and re-raised."""
    path = Path(config_dir or CONFIG_DIR) / config_file_name
    try:
        data = await read_file(path)
        return json.loads(data)
    except Exception as e:
        logger.error(f"Failed to load OpenAI config: {e}")
        raise


def build_request(template: dict[str, Any], used_prompts: list[str], locale: str) -> dict[str, Any]:
    """Copy the template, filling the history marker and the language instruction.

    Templates without a first message carrying string content are sent as-is.
    """
    request = copy.deepcopy(template)
    messages = request.get("messages") if isinstance(request, dict) else None
    if not messages or not isinstance(messages, list):
        return request
    first = messages[0]
    if not isinstance(first, dict) or not isinstance(first.get("content"), str) or not first["content"]:
        return request
    first["content"] = (
        first["content"].replace(USED_PROMPTS_MARKER, "\n".join(used_prompts))
        + f"\nPlease generate the response words in language: {locale}"
    )
    return request


def _function_arguments(completion) -> str:
    message = completion.choices[0].message
    tool_calls = getattr(message, "tool_calls", None)
    if tool_calls:
        return tool_calls[0].function.arguments
    return message.function_call.arguments


async def generate_prompt(
    locale: Optional[str] = None,
    *,
    client: Optional[AsyncOpenAI] = None,
    db=None,
    logger: logging.Logger = log,
    read_file=_read_text,
    config_dir: Optional[Path] = None,
    config_file_name: str = DEFAULT_CONFIG_FILE,
    history_limit: int = HISTORY_LIMIT,
    fetch_recent_fn=fetch_recent,
    store_fn=store,
) -> Optional[list[str]]:
    """Ask the model for a [trait, hobby, object] triple and record it in history.

    Raises ConfigurationError when no client can be built and re-raises
    template read/parse errors. A failed completion, a function call without
    three non-empty strings, or a raising store_fn returns None.
    """
    used_locale = locale if isinstance(locale, str) and locale.strip() else DEFAULT_LOCALE
    logger.debug(f"Generating prompt with locale: '{used_locale}'")

    if client is None:
        client = _get_openai_client(logger)

    template = await load_template(config_dir, config_file_name, read_file=read_file, logger=logger)

    try:
        used_prompts = await fetch_recent_fn(db, history_limit, logger=logger)
    except Exception as e:
        logger.error(f"Failed to fetch history: {e}")
        used_prompts = []

    request = build_request(template, used_prompts, used_locale)

    try:
        completion = await client.chat.completions.create(**request)
        args = json.loads(_function_arguments(completion))
        triple = [args["personality_trait"], args["hobby"], args["object"]]
        if not all(isinstance(word, str) and word.strip() for word in triple):
            raise ValueError(f"Function call returned unusable words: {triple!r}")
        await store_fn(db, *triple, logger=logger)
    except Exception as e:
        logger.error(f"OpenAI request failed: {e}")
        return None

    return triple
