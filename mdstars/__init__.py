from __future__ import annotations
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("mdstars")
except PackageNotFoundError:  # local dev
    __version__ = "0.0.0.dev0"

from . import cells, tables, ops, utils

__all__ = ["cells", "tables", "ops", "utils", "__version__"]
