"""Shared constants for the Textual UI."""

from __future__ import annotations

ACCENT = "#F5A524"
USER_COLOR = "#7FB3D5"
