"""JSON catalog adapter.

The catalog ships as a static JSON asset; this module only reads it and hands
the raw records to the core for normalization.
"""

from __future__ import annotations

import json
import os
from typing import List

from core.catalog import build_catalog
from core.models import CatalogEntry


def load_catalog(path: str) -> List[CatalogEntry]:
    """Load and compile the ad catalog stored at ``path``.

    Accepts either a top-level list of ads or an object with an ``ads`` list.
    """

    if not os.path.exists(path):
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)

    if isinstance(raw, dict):
        raw = raw.get("ads", [])
    if not isinstance(raw, list):
        raise ValueError(f"Catalog must be a list of ads: {path}")
    return build_catalog(raw)
