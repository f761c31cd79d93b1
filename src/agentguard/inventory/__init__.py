"""Mechanical inventories used as category generator commands."""

from __future__ import annotations

from .env_inventory import build_inventory, render_markdown, write_inventory

__all__ = ["build_inventory", "render_markdown", "write_inventory"]
