"""Catalog compilation and lookup helpers (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from core.models import AdLink, CatalogEntry, CompanyInfo


def _build_company(raw: Optional[dict]) -> Optional[CompanyInfo]:
    if not raw or not raw.get("name"):
        return None
    return CompanyInfo(name=str(raw["name"]), logo=raw.get("logo"))


def _build_links(raw_links: Iterable[dict]) -> tuple[AdLink, ...]:
    links: List[AdLink] = []
    for link in raw_links:
        if not link.get("url"):
            continue
        links.append(
            AdLink(
                text=str(link.get("text") or link["url"]),
                url=str(link["url"]),
                description=link.get("description"),
            )
        )
    return tuple(links)


def build_catalog(raw_entries: Iterable[dict]) -> List[CatalogEntry]:
    """Normalize raw ad records into immutable catalog entries.

    Keywords and category are case-folded once here so scoring never has to
    guess about casing; ``summary`` falls back to ``description``.
    """

    catalog: List[CatalogEntry] = []
    seen_ids: set[int] = set()
    for raw in raw_entries:
        for required in ("id", "title", "category"):
            if required not in raw:
                raise ValueError(f"Catalog entry is missing '{required}': {raw!r}")

        entry_id = int(raw["id"])
        if entry_id <= 0:
            raise ValueError(f"Catalog entry id must be positive: {entry_id}")
        if entry_id in seen_ids:
            raise ValueError(f"Duplicate catalog entry id: {entry_id}")
        seen_ids.add(entry_id)

        keywords = [str(k).lower() for k in raw.get("keywords") or [] if str(k).strip()]
        catalog.append(
            CatalogEntry(
                id=entry_id,
                title=str(raw["title"]),
                summary=str(raw.get("summary") or raw.get("description") or ""),
                category=str(raw["category"]).lower(),
                keywords=tuple(keywords),
                company=_build_company(raw.get("company")),
                links=_build_links(raw.get("links", []) or []),
            )
        )
    return catalog


def get_entry_by_id(catalog: Sequence[CatalogEntry], entry_id: int) -> Optional[CatalogEntry]:
    for entry in catalog:
        if entry.id == entry_id:
            return entry
    return None


def entries_by_category(catalog: Sequence[CatalogEntry], category: str) -> List[CatalogEntry]:
    wanted = category.lower()
    return [entry for entry in catalog if entry.category == wanted]


def entries_by_keywords(
    catalog: Sequence[CatalogEntry], keywords: Iterable[str]
) -> List[CatalogEntry]:
    """Return entries having any tag that contains any of ``keywords``."""

    search = [k.lower() for k in keywords if k]
    return [
        entry
        for entry in catalog
        if any(term in tag for tag in entry.keywords for term in search)
    ]


def list_categories(catalog: Sequence[CatalogEntry]) -> List[str]:
    """Return distinct categories in catalog order."""

    return list(dict.fromkeys(entry.category for entry in catalog))
