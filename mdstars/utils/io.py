from __future__ import annotations
import os
import re
import sys
import tempfile
from typing import List, Optional

import pandas as pd
from wcwidth import wcswidth


def read_document(path: str, *, encoding: str = "utf-8") -> List[str]:
    """
    Read a markdown document as lines split on ``\\n`` only.
    Carriage returns and the final empty line after a trailing newline are
    kept so that ``"\\n".join`` reproduces the file byte for byte.
    """
    with open(path, "r", encoding=encoding, newline="") as fh:
        return fh.read().split("\n")


def write_document(path: str, lines: List[str], *, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``lines`` in one step (temp file + rename)."""
    target = os.path.abspath(path)
    directory = os.path.dirname(target)
    fd, tmp = tempfile.mkstemp(prefix=".mdstars-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as fh:
            fh.write("\n".join(lines))
        if os.path.exists(target):
            os.chmod(tmp, os.stat(target).st_mode & 0o7777)
        os.replace(tmp, target)
    except BaseException:
        try: os.unlink(tmp)
        except OSError: pass
        raise


def pretty_print(df: pd.DataFrame, *, args=None, stream: str = "stdout") -> None:
    """
    ASCII table preview with MySQL-style borders.
    Honors:
      - args.max_col_width  : truncate cells to this display width (default 40)
      - args.show_full      : disable truncation
    """
    out_stream = sys.stdout if stream == "stdout" else sys.stderr
    supports_color = out_stream.isatty() and os.environ.get("NO_COLOR") is None
    C_RESET = "\033[0m" if supports_color else ""
    C_BLUE = "\033[94m" if supports_color else ""
    C_RED = "\033[91m" if supports_color else ""

    max_col_width = None if getattr(args, "show_full", False) else int(getattr(args, "max_col_width", 40) or 40)

    ell = "…"
    try:
        ell.encode(out_stream.encoding or "utf-8")
    except Exception:
        ell = "..."

    def _coerce(x) -> str:
        s = "" if x is None else str(x)
        s = s.replace("\r", "").replace("\n", "⏎")
        return re.sub(r"[\x00-\x08\x0b-\x1f\x7f]", "", s)

    def clip(s: str, wmax: Optional[int]) -> str:
        if wmax is None: return s
        if wcswidth(s) <= wmax: return s
        keep = wmax - wcswidth(ell)
        out = ""
        for ch in s:
            if wcswidth(out + ch) > keep: break
            out += ch
        return out + ell

    numeric = [pd.api.types.is_numeric_dtype(df[c]) for c in df.columns]
    headers = [clip(_coerce(c), max_col_width) for c in df.columns]
    rows = []
    for row in df.itertuples(index=False):
        rows.append([("<NA>" if pd.isna(v) else clip(_coerce(v), max_col_width)) for v in row])

    widths = [max(wcswidth(x) for x in col) for col in zip(headers, *rows)] if headers else []

    def hline() -> str:
        return "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def render_row(vals, is_header=False) -> str:
        cells = []
        for i, (v, w) in enumerate(zip(vals, widths)):
            pad = " " * (w - wcswidth(v))
            if is_header:
                cells.append(f" {v}{pad} ")
            elif v == "<NA>":
                cells.append(f" {C_RED}{v}{C_RESET}{pad} ")
            elif numeric[i]:
                cells.append(f" {pad}{C_BLUE}{v}{C_RESET} ")
            else:
                cells.append(f" {v}{pad} ")
        return "|" + "|".join(cells) + "|"

    try:
        if not widths:
            out_stream.write("(empty table)\n")
            return
        out_stream.write(hline() + "\n")
        out_stream.write(render_row(headers, is_header=True) + "\n")
        out_stream.write(hline() + "\n")
        for r in rows:
            out_stream.write(render_row(r) + "\n")
        out_stream.write(hline() + "\n")
    except BrokenPipeError:
        return
