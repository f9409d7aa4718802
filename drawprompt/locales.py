from pathlib import Path
from typing import Optional

import yaml

LOCALES_FILE = Path(__file__).parent / "locales.yaml"


def load_messages(filename: str = None) -> dict[str, dict[str, str]]:
    path = filename or str(LOCALES_FILE)
    with open(path, encoding="utf-8") as file:
        return yaml.safe_load(file) or {}


messages = load_messages()


def get_msg(locale: Optional[str], key: str, fallback: str) -> str:
    """Look up `key` for `locale`, then for its base language ("fr" for "fr-FR"), then use `fallback`."""
    translations = messages.get(key) or {}
    if locale:
        if locale in translations:
            return translations[locale]
        base = locale.split("-", 1)[0]
        if base in translations:
            return translations[base]
    return fallback
