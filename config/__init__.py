import importlib
import os
from types import ModuleType
from typing import Optional

_ALIASES = {
    "prod": "production",
    "production": "production",
    "test": "testing",
    "testing": "testing",
}


def get_settings_module() -> str:
    """Settings module chosen by APP_ENV (defaults to development)."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    return f"config.{_ALIASES.get(env, 'development')}"


def load_settings(module: Optional[str] = None) -> ModuleType:
    return importlib.import_module(module or get_settings_module())
