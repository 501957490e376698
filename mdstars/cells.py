"""
Total parse functions over single table cells.

Every function here maps any input string either to a value or to ``None``;
none of them raise on malformed cell content.
"""
from __future__ import annotations
import math
import re
from typing import Optional, Union

import httpx
import numpy as np
from bs4 import BeautifulSoup

Number = Union[int, float]

MD_LINK_RE = re.compile(r"\]\(([^)]+)\)")
BARE_URL_RE = re.compile(r"https?://[^\s)]+", re.I)
SCHEME_RE = re.compile(r"^https?://", re.I)
AUTHORITY_ONLY_RE = re.compile(r"^https?://[^/?#]*(?=[?#]|$)", re.I)

GITHUB_ANY_RE = re.compile(r"(https?://)?(www\.)?github\.com/", re.I)
GITHUB_HREF_RE = re.compile(r"https?://(?:www\.)?github\.com/", re.I)
GITHUB_REPO_RE = re.compile(
    r"^https?://(?:www\.)?github\.com/([A-Za-z0-9_.-]+)/([A-Za-z0-9_.-]+)(?:/|$)", re.I
)
GITHUB_RAW_RE = re.compile(r"https?://(?:www\.)?github\.com/[A-Za-z0-9_./-]+", re.I)

STARS_K_RE = re.compile(r"^([0-9]*\.?[0-9]+)\s*k$")
STARS_NUM_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)(e[+-]?\d+)?$")


# -- Links --
def parse_link_cell(cell: Optional[str]) -> Optional[str]:
    """Return the URL of ``[text](url)``, else the first bare http(s) URL, else None."""
    if not cell:
        return None
    m = MD_LINK_RE.search(cell)
    if m and m.group(1).strip():
        return m.group(1).strip()
    plain = BARE_URL_RE.search(cell)
    return plain.group(0) if plain else None


def normalize_url(value: Optional[str]) -> Optional[str]:
    """
    Coerce a possibly schemeless string into an absolute http(s) URL.
    Returns None for empty input or when no well-formed host can be parsed.
    """
    if not value or not value.strip():
        return None
    s = value.strip()
    if not SCHEME_RE.match(s):
        s = "https://" + s
    try:
        url = httpx.URL(s)
    except httpx.InvalidURL:
        return None
    # httpx percent-quotes characters a host may not contain
    host = url.host
    if not host or "%" in host or any(c.isspace() for c in host):
        return None
    if url.port is not None and not 0 <= url.port <= 65535:
        return None
    if AUTHORITY_ONLY_RE.match(s):
        url = url.copy_with(path="/")
    return str(url)


def is_github_link(text: Optional[str]) -> bool:
    return bool(text) and GITHUB_ANY_RE.search(text) is not None


def parse_github_repo(url: Optional[str]) -> Optional[str]:
    """``https://github.com/Owner/Name(.git)/...`` -> ``"Owner/Name"``."""
    if not url:
        return None
    m = GITHUB_REPO_RE.match(url)
    if not m:
        return None
    name = re.sub(r"\.git$", "", m.group(2), flags=re.I)
    return f"{m.group(1)}/{name}"


def repo_cache_key(repo: str) -> str:
    # GitHub resolves owner/name case-insensitively
    return repo.lower()


def find_github_link_in_html(html: Optional[str]) -> Optional[str]:
    """
    Pick a GitHub link out of a fetched page.

    Candidates are collected from ``href`` attributes first (document order),
    then from raw ``https://github.com/...`` text. A repository-looking URL
    (``/owner/name``) wins; otherwise the first GitHub link of any kind.
    Protocol-relative links are expanded to https.
    """
    if not html:
        return None
    found: dict[str, None] = {}
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(href=True):
        href = str(tag["href"]).strip()
        full = "https:" + href if href.startswith("//") else href
        if GITHUB_HREF_RE.match(full):
            found.setdefault(full, None)
    for m in GITHUB_RAW_RE.finditer(html):
        found.setdefault(m.group(0), None)

    if not found:
        return None
    for href in found:
        if GITHUB_REPO_RE.match(href):
            return href
    return next(iter(found))


# -- Stars --
def _as_number(value: float) -> Optional[Number]:
    if not np.isfinite(value):
        return None
    return int(value) if float(value).is_integer() else value


def parse_stars(cell: Optional[str]) -> Optional[Number]:
    """
    Parse a star count such as ``1,234``, ``2.5k`` or ``3K``.
    Returns None when the text is empty or not a number after normalization.
    """
    if cell is None:
        return None
    s = str(cell).strip()
    if not s:
        return None
    normalized = s.replace(",", "").lower()

    m = STARS_K_RE.match(normalized)
    if m:
        # round half up, as a star count reads "2.5k" -> 2500, "0.0005k" -> 1
        return _as_number(float(math.floor(float(m.group(1)) * 1000 + 0.5)))

    if not STARS_NUM_RE.match(normalized):
        return None
    try:
        return _as_number(float(normalized))
    except (ValueError, OverflowError):
        return None


# -- Separators --
def separator_cell_from(cell: Optional[str]) -> str:
    """Build a ``---`` separator keeping the reference cell's ``:`` alignment markers."""
    trimmed = (cell or "").strip()
    left = ":" if trimmed.startswith(":") else ""
    right = ":" if trimmed.endswith(":") else ""
    return f"{left}---{right}"
