"""Static configuration for tidings.

All user-editable settings (call keywords, typing phrases, sender filter,
scrape phrases, logging) live in a single JSON file for quick edits without
touching Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import build_engine_config

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

# TIDINGS_CONFIG lets a desktop shell point us at its own copy of the file.
CONFIG_PATH = os.getenv("TIDINGS_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Everything the core engine consumes, validated once at startup.
ENGINE_CONFIG = build_engine_config(_CONFIG)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
