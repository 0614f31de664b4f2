"""Static configuration for adscope.

All user-editable settings (model, streaming, ad matching thresholds,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

# The bundled ad catalog sits next to this module unless config.json points elsewhere.
DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "catalog.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

_catalog = _CONFIG.get("catalog", {})
CATALOG_PATH = _resolve_path(_catalog["path"]) if _catalog.get("path") else DEFAULT_CATALOG_PATH

# Conversations, messages, and preferences persist in SQLite.
_storage = _CONFIG.get("storage", {})
DB_PATH = _resolve_path(_storage.get("path", "data/adscope.db"))

# Model request settings. API keys come from the environment.
_chat = _CONFIG.get("chat", {})
DEFAULT_PROVIDER = _chat.get("default_provider", "gemini")
DEFAULT_MODEL = _chat.get("default_model", "gemini-1.5-flash")
TEMPERATURE = float(_chat.get("temperature", 0.7))
MAX_OUTPUT_TOKENS = int(_chat.get("max_output_tokens", 4000))
SYSTEM_PROMPT = _chat.get("system_prompt", "")

# Simulated streaming replays the full reply a few characters at a time.
# - ENABLE_STREAMING: off renders the reply in one step
# - STREAM_SPEED: multiplier on per-chunk delays (0 disables pauses)
_streaming = _CONFIG.get("streaming", {})
ENABLE_STREAMING = bool(_streaming.get("enabled", True))
STREAM_SPEED = float(_streaming.get("speed", 1.0))

# Scoring weights must keep brand > exact tag > title > category > summary > partial tag.
SCORING_WEIGHTS = _CONFIG.get("scoring", {})

# Placement thresholds drop as more conversation text accumulates.
_placement = _CONFIG.get("placement", {})
INPUT_MIN_SCORE = int(_placement.get("input_min_score", 15))
STREAMING_MIN_SCORE = int(_placement.get("streaming_min_score", 15))
COMPLETION_MIN_SCORE = int(_placement.get("completion_min_score", 10))
CONTEXTUAL_MIN_SCORE = int(_placement.get("contextual_min_score", 8))
EARLY_CONTEXT_CHARS = int(_placement.get("early_context_chars", 300))
STREAM_MIN_CHARS = int(_placement.get("stream_min_chars", 250))
RECENCY_PENALTY = float(_placement.get("recency_penalty", 0.3))
RECENT_CAPACITY = int(_placement.get("recent_capacity", 10))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
