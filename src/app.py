"""Application entry point for the adscope chat demo."""

from __future__ import annotations

import argparse
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Mapping, Optional, Sequence

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.ad_formatting import format_ad_card
from adapters.catalog_loader import load_catalog
from adapters.sqlite_storage import SQLiteStorage
from core.catalog import entries_by_category, entries_by_keywords, list_categories
from core.config import (
    ChatConfig,
    PlacementConfig,
    RegistryConfig,
    ScoringWeights,
    SelectionConfig,
)
from core.models import CatalogEntry
from core.placement import PlacementPolicy
from core.processor import ChatProcessor
from core.ports import LanguageModelPort, StoragePort
from core.registry import ShownAdRegistry
from core.selector import AdSelector

NAME = "ADSCOPE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(console_override: Optional[bool] = None) -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    console = config.get("console", True) if console_override is None else console_override
    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/adscope.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _placement_config() -> PlacementConfig:
    return PlacementConfig(
        input_min_score=settings.INPUT_MIN_SCORE,
        streaming_min_score=settings.STREAMING_MIN_SCORE,
        completion_min_score=settings.COMPLETION_MIN_SCORE,
        contextual_min_score=settings.CONTEXTUAL_MIN_SCORE,
        early_context_chars=settings.EARLY_CONTEXT_CHARS,
        stream_min_chars=settings.STREAM_MIN_CHARS,
    )


def build_selector(catalog: Sequence[CatalogEntry]) -> AdSelector:
    """Build the selector from the catalog and configured weights."""

    weights = ScoringWeights(**settings.SCORING_WEIGHTS)
    return AdSelector(
        catalog,
        weights=weights,
        config=SelectionConfig(recency_penalty=settings.RECENCY_PENALTY),
    )


def open_storage(db_path: str) -> SQLiteStorage:
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    storage = SQLiteStorage(db_path)
    storage.init_db()
    return storage


def build_processor(
    catalog: Sequence[CatalogEntry],
    language_models: Mapping[str, LanguageModelPort],
    storage: Optional[StoragePort] = None,
) -> ChatProcessor:
    """Wire selector, registry, placement policy, and storage around the models."""

    selector = build_selector(catalog)
    registry = ShownAdRegistry(RegistryConfig(recent_capacity=settings.RECENT_CAPACITY))
    policy = PlacementPolicy(selector, registry, _placement_config())
    chat_config = ChatConfig(
        provider=settings.DEFAULT_PROVIDER,
        model=settings.DEFAULT_MODEL,
        temperature=settings.TEMPERATURE,
        max_output_tokens=settings.MAX_OUTPUT_TOKENS,
        enable_streaming=settings.ENABLE_STREAMING,
        stream_speed=settings.STREAM_SPEED,
    )
    processor = ChatProcessor(
        language_models=language_models,
        selector=selector,
        policy=policy,
        registry=registry,
        chat_config=chat_config,
        storage=storage,
    )
    processor.load()
    return processor


def _chat() -> None:
    _print_banner()
    _configure_logging(console_override=False)
    logger = logging.getLogger(__name__)

    catalog = load_catalog(settings.CATALOG_PATH)
    logger.info("%s ads are loaded", len(catalog))

    # Imported lazily so the CLI commands do not pay for Textual startup.
    from client import build_language_models
    from frontend.app import ChatApp

    processor = build_processor(catalog, build_language_models(), open_storage(settings.DB_PATH))
    ChatApp(processor).run()


def _match(text: str, min_score: int, max_results: int) -> None:
    _configure_logging()
    catalog = load_catalog(settings.CATALOG_PATH)
    selector = build_selector(catalog)
    matches = selector.select(text, max_results=max_results, min_score=min_score)
    if not matches:
        print(f"No ads above {min_score} points.")
        return
    for match in matches:
        print(f"score={match.score}")
        print(format_ad_card(match.entry, "plain", match.matched_keywords))


def _ads(category: Optional[str], keywords: Optional[list[str]]) -> None:
    catalog = load_catalog(settings.CATALOG_PATH)
    entries = entries_by_category(catalog, category) if category else catalog
    if keywords:
        entries = entries_by_keywords(entries, keywords)
    if not entries:
        print(f"No ads match. Known categories: {', '.join(list_categories(catalog))}")
        return
    for entry in entries:
        print(format_ad_card(entry, "plain"))


def _context(db_path: str, conversation_id: Optional[int]) -> None:
    """Print reinforcement ads for a saved conversation (the newest by default)."""

    catalog = load_catalog(settings.CATALOG_PATH)
    processor = build_processor(catalog, {}, open_storage(db_path))
    conversation = processor.current
    if conversation_id is not None:
        conversation = next(
            (conv for conv in processor.conversations() if conv.id == conversation_id), None
        )
    if conversation is None:
        print("No saved conversation found.")
        return

    placements = processor.contextual_placements(conversation.id)
    if not placements:
        print(f"No contextual ads for '{conversation.title}'.")
        return
    for placement in placements:
        print(f"after message #{placement.message_index + 1} score={placement.match.score}")
        print(format_ad_card(placement.match.entry, "plain", placement.match.matched_keywords))


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="adscope")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("chat", help="Start the chat UI")

    match_parser = subparsers.add_parser("match", help="Show which ads match a piece of text")
    match_parser.add_argument("text")
    match_parser.add_argument("--min-score", type=int, default=settings.COMPLETION_MIN_SCORE)
    match_parser.add_argument("--max-results", type=int, default=3)

    ads_parser = subparsers.add_parser("ads", help="List the ad catalog")
    ads_parser.add_argument("--category")
    ads_parser.add_argument(
        "--keyword", action="append", help="Keep ads with a tag containing this text"
    )

    context_parser = subparsers.add_parser(
        "context", help="Suggest contextual ads for a saved conversation"
    )
    context_parser.add_argument("--conversation", type=int)
    context_parser.add_argument("--db", default=settings.DB_PATH)

    args = parser.parse_args(argv)
    if args.command == "match":
        _match(args.text, args.min_score, args.max_results)
        return
    if args.command == "ads":
        _ads(args.category, args.keyword)
        return
    if args.command == "context":
        _context(args.db, args.conversation)
        return
    _chat()


if __name__ == "__main__":
    main()
