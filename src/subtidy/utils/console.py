"""Shared rich console used for all log output."""

from __future__ import annotations

from rich.console import Console

console = Console(highlight=False)
