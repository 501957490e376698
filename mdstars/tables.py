"""
Pipe-table model over a document held as a list of lines.

A table is a maximal run of consecutive lines starting with ``|``: the first
line is the header, the second the separator, the rest data rows. Column
indices are positions in ``line.split("|")`` and are only valid until the
next structural edit of the same table.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .cells import parse_stars, separator_cell_from
from .utils.columns import BLANK, find_column, join_row, pad_cells, split_row
from .utils.logging import get_logger

logger = get_logger("mdstars.tables")

TABLE_PREFIX = "|"


@dataclass
class Table:
    start: int
    rows: List[int] = field(default_factory=list)

    @property
    def header(self) -> int:
        return self.rows[0]

    @property
    def separator(self) -> Optional[int]:
        return self.rows[1] if len(self.rows) > 1 else None

    @property
    def data_rows(self) -> List[int]:
        return self.rows[2:]

    @property
    def has_separator(self) -> bool:
        return len(self.rows) >= 2

    @property
    def has_data(self) -> bool:
        """Header + separator + at least one data row."""
        return len(self.rows) >= 3

    def header_cells(self, lines: Sequence[str]) -> List[str]:
        return split_row(lines[self.header])

    def column(self, lines: Sequence[str], *names: str) -> Optional[int]:
        return find_column(self.header_cells(lines), *names)


def is_table_line(line: str) -> bool:
    return line.startswith(TABLE_PREFIX)


def scan_tables(lines: Sequence[str]) -> List[Table]:
    """Delimit every table in ``lines``. Read-only."""
    tables: List[Table] = []
    current: Optional[Table] = None
    for i, line in enumerate(lines):
        if not is_table_line(line):
            # headings, blank lines and prose all close the open table
            current = None
            continue
        if current is None:
            current = Table(start=i, rows=[i])
            tables.append(current)
        else:
            current.rows.append(i)
    return tables


#-- Column editing --
def insertion_index(header_cells: Sequence[str], anchor: Optional[int]) -> int:
    """Right after the anchor column, or just before the trailing artifact cell."""
    if anchor is not None:
        return anchor + 1
    return max(0, len(header_cells) - 1)


def insert_column(lines: List[str], table: Table, index: int, label: str,
                  *, ref_index: Optional[int] = None) -> int:
    """
    Insert a column at ``index`` in every line of ``table``.

    The separator cell copies the alignment of the separator cell at
    ``ref_index``; data rows get a blank cell. Returns the number of lines
    rewritten.
    """
    header = split_row(lines[table.header])
    header.insert(index, f" {label} ")
    lines[table.header] = join_row(header)
    touched = 1

    if table.separator is not None:
        sep = split_row(lines[table.separator])
        ref = sep[ref_index] if ref_index is not None and 0 <= ref_index < len(sep) else None
        sep.insert(index, f" {separator_cell_from(ref)} ")
        lines[table.separator] = join_row(sep)
        touched += 1

    for ri in table.data_rows:
        cells = split_row(lines[ri])
        cells.insert(index, BLANK)
        lines[ri] = join_row(cells)
        touched += 1

    logger.debug("Inserted column %r at %d in table at line %d", label, index, table.start + 1)
    return touched


def split_column(lines: List[str], table: Table, index: int, *,
                 labels: Tuple[str, str], predicate: Callable[[str], bool]) -> int:
    """
    Split the column at ``index`` into two columns labelled ``labels``.

    Non-empty content goes to the second column when ``predicate`` holds and
    stays in the first otherwise. Returns the number of data rows whose
    content was routed; empty rows are restructured but not counted.
    """
    first, second = labels

    header = pad_cells(split_row(lines[table.header]), index, fill="")
    header[index] = f" {first} "
    header.insert(index + 1, f" {second} ")
    lines[table.header] = join_row(header)

    if table.separator is not None:
        sep = pad_cells(split_row(lines[table.separator]), index + 1, fill="")
        sep.insert(index + 1, f" {separator_cell_from(sep[index])} ")
        lines[table.separator] = join_row(sep)

    moved = 0
    for ri in table.data_rows:
        cells = pad_cells(split_row(lines[ri]), index + 1, fill="")
        content = cells[index].strip()
        kept, routed = BLANK, BLANK
        if content:
            if predicate(content):
                routed = f" {content} "
            else:
                kept = f" {content} "
            moved += 1
        cells[index] = kept
        cells.insert(index + 1, routed)
        lines[ri] = join_row(cells)

    logger.debug("Split column %d into %r/%r in table at line %d", index, first, second, table.start + 1)
    return moved


#-- Row sorting --
def star_frame(lines: Sequence[str], table: Table, key_index: int) -> pd.DataFrame:
    """One record per data row: position, line content and parsed star key (NaN if absent)."""
    records = []
    for pos, ri in enumerate(table.data_rows):
        cells = split_row(lines[ri])
        raw = cells[key_index] if key_index < len(cells) else ""
        stars = parse_stars(raw)
        records.append({"pos": pos, "line": lines[ri],
                        "stars": np.nan if stars is None else float(stars)})
    return pd.DataFrame.from_records(records, columns=["pos", "line", "stars"])


def sort_rows(lines: List[str], table: Table, key_index: int) -> bool:
    """
    Reorder the data rows of ``table`` by star count, descending.

    Rows without a parseable count go last; ties and unparseable rows keep
    their original relative order. Header, separator and the set of line
    positions are untouched. Returns False when the order is already sorted.
    """
    if not table.has_data:
        return False
    frame = star_frame(lines, table, key_index)
    ordered = frame.sort_values(
        by=["stars", "pos"], ascending=[False, True],
        na_position="last", kind="mergesort",
    )
    order = ordered["pos"].tolist()
    if order == list(range(len(order))):
        return False

    for target, line in zip(table.data_rows, ordered["line"].tolist()):
        lines[target] = line
    return True
