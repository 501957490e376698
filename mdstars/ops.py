"""
Document-level transformations.

Each operation edits the document's lines in place and returns a ``Report``.
Structural work is synchronous; the two ``fill_*`` operations await the
link-resolution client one row at a time.
"""
from __future__ import annotations
import math
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from . import tables as T
from .cells import (find_github_link_in_html, is_github_link, normalize_url,
                    parse_github_repo, parse_link_cell, repo_cache_key)
from .fetch import LinkResolutionClient
from .utils import columns as UCOL
from .utils.logging import get_logger

logger = get_logger("mdstars.ops")

STARS_LABEL = UCOL.STARS[0]
WEBSITE_LABEL = UCOL.WEBSITE[0]
GITHUB_LABEL = UCOL.GITHUB[0]


@dataclass
class Report:
    tables_changed: int = 0
    rows_changed: int = 0
    api_calls: int = 0
    rate_limited: bool = False
    reset_at: Optional[int] = None
    failures: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.tables_changed > 0 or self.rows_changed > 0

    def minutes_until_reset(self, now: Optional[float] = None) -> Optional[int]:
        if self.reset_at is None:
            return None
        now = time.time() if now is None else now
        return math.ceil(max(0.0, self.reset_at - now) / 60)


def _ensure_stars_column(lines: List[str], table: T.Table, github_col: Optional[int]) -> Optional[int]:
    """Insert "GitHub Stars" after Github (or at the end). None if it already exists."""
    if table.column(lines, *UCOL.STARS) is not None:
        return None
    header = table.header_cells(lines)
    index = T.insertion_index(header, github_col)
    ref = github_col if github_col is not None else max(0, len(header) - 2)
    T.insert_column(lines, table, index, STARS_LABEL, ref_index=ref)
    return index


def add_stars_column(lines: List[str]) -> Report:
    """Give every table lacking a "GitHub Stars" column an empty one."""
    report = Report()
    for table in T.scan_tables(lines):
        if not table.has_separator:
            continue
        github_col = table.column(lines, *UCOL.GITHUB)
        index = _ensure_stars_column(lines, table, github_col)
        if index is None:
            continue
        report.tables_changed += 1
        report.rows_changed += len(table.rows)
    logger.info("Added %r column to %d table(s); %d line(s) updated.",
                STARS_LABEL, report.tables_changed, report.rows_changed)
    return report


def split_link_column(lines: List[str]) -> Report:
    """Split every "Link" column into "Website" and "Github" by link target."""
    report = Report()
    for table in T.scan_tables(lines):
        link_col = table.column(lines, *UCOL.LINK)
        if link_col is None:
            continue
        moved = T.split_column(lines, table, link_col,
                               labels=(WEBSITE_LABEL, GITHUB_LABEL),
                               predicate=is_github_link)
        report.tables_changed += 1
        report.rows_changed += moved
    logger.info("Split %d link column(s); %d row(s) routed.",
                report.tables_changed, report.rows_changed)
    return report


def sort_tables_by_stars(lines: List[str]) -> Report:
    """Sort every table that has a "GitHub Stars" column by star count."""
    report = Report()
    processed = 0
    for table in T.scan_tables(lines):
        if not table.has_data:
            continue
        stars_col = table.column(lines, *UCOL.STARS)
        if stars_col is None:
            continue
        processed += 1
        if T.sort_rows(lines, table, stars_col):
            report.tables_changed += 1
    logger.info("Tables processed: %d. Tables changed: %d.", processed, report.tables_changed)
    return report


async def fill_github_from_website(lines: List[str], client: LinkResolutionClient) -> Report:
    """
    For rows with an empty Github cell and a usable Website URL, fetch the
    site and record the first GitHub repository link it exposes.
    """
    report = Report()
    jobs = []
    for table in T.scan_tables(lines):
        if not table.has_data:
            continue
        website_col = table.column(lines, *UCOL.WEBSITE)
        github_col = table.column(lines, *UCOL.GITHUB)
        if website_col is None or github_col is None:
            continue
        for ri in table.data_rows:
            cells = UCOL.pad_cells(UCOL.split_row(lines[ri]), max(website_col, github_col))
            if cells[github_col].strip():
                continue
            url = normalize_url(parse_link_cell(cells[website_col]))
            if url:
                jobs.append((ri, github_col, url))

    if not jobs:
        logger.info("No rows require updates (no empty Github with a Website URL).")
        return report

    logger.info("Fetching %d website(s) to discover GitHub links...", len(jobs))
    for ri, github_col, url in jobs:
        logger.debug("Fetching: %s", url)
        res = await client.fetch_page(url)
        report.api_calls += 1
        if not res.ok:
            logger.warning("%s: skipped (%s)", url, res.error or "request failed")
            report.failures.append(f"{url}: {res.error}")
            continue
        found = find_github_link_in_html(res.body)
        if not found:
            logger.warning("%s: no GitHub link found", url)
            continue
        cells = UCOL.pad_cells(UCOL.split_row(lines[ri]), github_col)
        cells[github_col] = f" [Link]({found}) "
        lines[ri] = UCOL.join_row(cells)
        report.rows_changed += 1
        logger.info("%s: found %s", url, found)

    logger.info("Filled %d GitHub link(s).", report.rows_changed)
    return report


async def fill_github_stars(lines: List[str], client: LinkResolutionClient) -> Report:
    """
    Populate "GitHub Stars" from the GitHub API for every row whose Github
    cell links a repository, inserting the column where it is missing.

    Stops at the first rate-limit response; column insertions already made
    stay in place.
    """
    report = Report()
    jobs = []
    for table in T.scan_tables(lines):
        if not table.has_data:
            continue
        github_col = table.column(lines, *UCOL.GITHUB)
        if github_col is None:
            continue
        if _ensure_stars_column(lines, table, github_col) is not None:
            report.tables_changed += 1
        # indices are re-resolved after the insertion
        github_col = table.column(lines, *UCOL.GITHUB)
        stars_col = table.column(lines, *UCOL.STARS)
        for ri in table.data_rows:
            cells = UCOL.pad_cells(UCOL.split_row(lines[ri]), max(github_col, stars_col))
            repo = parse_github_repo(parse_link_cell(cells[github_col]))
            if repo:
                jobs.append((ri, stars_col, repo))

    if not jobs:
        logger.info("No GitHub links found in tables.")
        return report

    logger.info("Fetching stars for %d row(s)...", len(jobs))
    cache: Dict[str, Optional[int]] = {}
    for ri, stars_col, repo in jobs:
        key = repo_cache_key(repo)
        if key not in cache:
            res = await client.fetch_repo_stars(repo)
            report.api_calls += 1
            if res.rate_limited:
                report.rate_limited = True
                report.reset_at = res.reset
                wait = report.minutes_until_reset()
                logger.warning("Rate limit reached. Set GITHUB_TOKEN or retry in ~%s min.",
                               wait if wait is not None else "unknown")
                break
            if not res.ok:
                logger.warning("%s: failed (%s)", repo, res.status or res.error or "error")
                report.failures.append(f"{repo}: {res.status or res.error}")
            cache[key] = res.stars if res.ok else None
        stars = cache[key]
        if stars is None:
            continue
        cells = UCOL.pad_cells(UCOL.split_row(lines[ri]), stars_col)
        cells[stars_col] = f" {stars} "
        updated = UCOL.join_row(cells)
        if updated == lines[ri]:
            continue
        lines[ri] = updated
        report.rows_changed += 1

    logger.info("Tables touched: %d. Rows updated: %d. API calls: %d.",
                report.tables_changed, report.rows_changed, report.api_calls)
    return report
