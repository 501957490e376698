# Shared helpers for the command line and the table engine.
from __future__ import annotations

from . import io, columns, formatters, parsing
from . import logging as ULOG

__all__ = ["io", "parsing", "columns", "formatters", "ULOG"]
