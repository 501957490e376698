from __future__ import annotations
from typing import List, Optional, Sequence

# Accepted header spellings, in the order they are tried.
GITHUB = ("Github", "GitHub")
STARS = ("GitHub Stars",)
WEBSITE = ("Website",)
LINK = ("Link",)

BLANK = " "


def split_row(line: str) -> List[str]:
    """Split a table line on ``|``; the leading/trailing artifacts are kept as cells."""
    return line.split("|")


def join_row(cells: Sequence[str]) -> str:
    return "|".join(cells)


def pad_cells(cells: List[str], upto: int, fill: str = BLANK) -> List[str]:
    """Pad ``cells`` in place so that index ``upto`` exists."""
    while len(cells) <= upto:
        cells.append(fill)
    return cells


def find_column(cells: Sequence[str], *names: str) -> Optional[int]:
    """
    Resolve a column index from header cells.

    Each name in ``names`` is tried in order against the trimmed,
    case-folded header text; the first hit wins. Returns None when no
    spelling matches.
    """
    folded = [str(c).strip().casefold() for c in cells]
    for name in names:
        want = name.strip().casefold()
        try:
            return folded.index(want)
        except ValueError:
            continue
    return None


def header_columns(cells: Sequence[str]) -> List[str]:
    """Visible column names: trimmed header cells without the delimiter artifacts."""
    names = [str(c).strip() for c in cells]
    if names and names[0] == "":
        names = names[1:]
    if names and names[-1] == "":
        names = names[:-1]
    return names
