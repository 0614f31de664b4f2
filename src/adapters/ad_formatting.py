"""Shared ad card formatting helpers.

Keeping formatting here prevents drift between the chat UI and the CLI and
keeps sponsored cards consistent regardless of where they are shown.
"""

from __future__ import annotations

from typing import Iterable, Optional

from core.models import CatalogEntry

DIVIDER = "──────────────"


def brand_label(entry: CatalogEntry) -> str:
    """Return the advertiser name, falling back to the category."""

    if entry.company and entry.company.name:
        return entry.company.name
    return entry.category


def _format_markdown(entry: CatalogEntry, matched: Iterable[str]) -> str:
    """Create the Markdown card body used by the chat UI."""

    def escape_md(value: str) -> str:
        for ch in r"*_[`":
            value = value.replace(ch, f"\\{ch}")
        return value

    lines = [
        f"**Sponsored** · {escape_md(brand_label(entry))} · _{escape_md(entry.category)}_",
        "",
        f"### {escape_md(entry.title)}",
        "",
        escape_md(entry.summary),
    ]
    if entry.links:
        lines.append("")
        for link in entry.links:
            item = f"- [{escape_md(link.text)}](https://{link.url.removeprefix('https://')})"
            if link.description:
                item += f": {escape_md(link.description)}"
            lines.append(item)

    matched = list(matched)
    if matched:
        lines.extend(["", f"_Why:_ {escape_md(', '.join(matched))}"])
    return "\n".join(lines)


def _format_plain(entry: CatalogEntry, matched: Iterable[str]) -> str:
    """Create the plain-text card body used by the CLI."""

    lines = [
        f"[{entry.id}] {entry.title}",
        f"Sponsored by {brand_label(entry)} ({entry.category})",
        DIVIDER,
        entry.summary,
    ]
    for link in entry.links:
        lines.append(f"  - {link.text}: {link.url}")

    matched = list(matched)
    if matched:
        lines.extend(["", f"Why: {', '.join(matched)}"])
    lines.append(DIVIDER)
    return "\n".join(lines)


def format_ad_card(
    entry: CatalogEntry,
    mode: str,
    matched_keywords: Optional[Iterable[str]] = None,
) -> str:
    """Return the ad card formatted for the requested mode."""

    matched = matched_keywords or ()
    if mode == "markdown":
        return _format_markdown(entry, matched)
    if mode == "plain":
        return _format_plain(entry, matched)
    raise ValueError(f"Unsupported ad card format: {mode}")
