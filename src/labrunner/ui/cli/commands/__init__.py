"""CLI command implementations exposed via `labrunner.ui.cli`."""

from __future__ import annotations

from .build import build


__all__ = ["build"]
