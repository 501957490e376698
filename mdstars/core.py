from __future__ import annotations
import sys
import argparse
import asyncio
import traceback
import signal

import pandas as pd

from . import __version__
from . import ops
from . import tables as T
from .fetch import LinkResolutionClient
from .utils import io as UIO
from .utils import parsing as UP
from .utils import logging as ULOG
from .utils import columns as UCOL
from .utils import formatters as UFMT


#-- Column Handlers --
def _handle_col_add_stars(lines: list[str], args: argparse.Namespace) -> ops.Report:
    """Insert an empty "GitHub Stars" column into every table lacking one."""
    return ops.add_stars_column(lines)


def _handle_col_split_link(lines: list[str], args: argparse.Namespace) -> ops.Report:
    return ops.split_link_column(lines)


#-- Sort Handlers --
def _handle_sort_stars(lines: list[str], args: argparse.Namespace) -> ops.Report:
    return ops.sort_tables_by_stars(lines)


#-- Fill Handlers --
def _client_from_args(args: argparse.Namespace) -> LinkResolutionClient:
    return LinkResolutionClient(
        token=getattr(args, "token", None),
        timeout=getattr(args, "timeout", 12.0),
        max_redirects=getattr(args, "max_redirects", 5),
        transport=getattr(args, "transport", None),
    )


def _handle_fill_github(lines: list[str], args: argparse.Namespace) -> ops.Report:
    """Discover missing Github links by fetching each row's Website."""
    async def run() -> ops.Report:
        async with _client_from_args(args) as client:
            return await ops.fill_github_from_website(lines, client)
    return asyncio.run(run())


def _handle_fill_stars(lines: list[str], args: argparse.Namespace) -> ops.Report:
    """Fetch repository star counts from the GitHub API."""
    async def run() -> ops.Report:
        async with _client_from_args(args) as client:
            return await ops.fill_github_stars(lines, client)
    report = asyncio.run(run())
    if report.rate_limited and not getattr(args, "token", None):
        ULOG.get_logger("mdstars.core").warning(
            "Hint: export GITHUB_TOKEN=your_token to increase rate limits.")
    return report


#-- View Handlers --
def tables_frame(lines: list[str]) -> pd.DataFrame:
    """One row per detected table: location, size and resolved semantic columns."""
    records = []
    for n, table in enumerate(T.scan_tables(lines), start=1):
        cells = table.header_cells(lines)
        resolved = {label: table.column(lines, *aliases)
                    for label, aliases in (("github", UCOL.GITHUB), ("stars", UCOL.STARS),
                                           ("website", UCOL.WEBSITE), ("link", UCOL.LINK))}
        records.append({
            "#": n,
            "line": table.start + 1,
            "rows": len(table.data_rows),
            "columns": ", ".join(UCOL.header_columns(cells)),
            **{k: ("" if v is None else v) for k, v in resolved.items()},
        })
    return pd.DataFrame.from_records(
        records, columns=["#", "line", "rows", "columns", "github", "stars", "website", "link"])


def _handle_view_tables(lines: list[str], args: argparse.Namespace) -> None:
    frame = tables_frame(lines)
    if frame.empty:
        sys.stdout.write("(no tables found)\n")
        return None
    UIO.pretty_print(frame, args=args, stream="stdout")
    return None


#-- Parser --
def _attach_col_group(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    """Attaches the 'col' command group and its actions."""
    p_col = subparsers.add_parser("col", help="Column operations",
                                  description="Commands that add or restructure table columns.",
                                  formatter_class=UFMT.ActionFirstHelpFormatter)
    csub = p_col.add_subparsers(dest="action", title="Action", metavar="Action", required=True,
                                parser_class=UFMT.ActionParser)

    c_stars = csub.add_parser("add-stars", help="Add an empty 'GitHub Stars' column after 'Github'", parents=parents)
    c_stars.set_defaults(handler=_handle_col_add_stars)

    c_split = csub.add_parser("split-link", help="Split a 'Link' column into 'Website' and 'Github'", parents=parents)
    c_split.set_defaults(handler=_handle_col_split_link)


def _attach_fill_group(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    """Attaches the 'fill' command group (network-backed cell population)."""
    p_fill = subparsers.add_parser("fill", help="Populate cells from the network",
                                   description="Commands that resolve links and fill table cells.",
                                   formatter_class=UFMT.ActionFirstHelpFormatter)
    fsub = p_fill.add_subparsers(dest="action", title="Action", metavar="Action", required=True,
                                 parser_class=UFMT.ActionParser)

    f_github = fsub.add_parser("github", help="Find Github links on each row's Website", parents=parents)
    UP.add_network_args(f_github)
    f_github.set_defaults(handler=_handle_fill_github)

    f_stars = fsub.add_parser("stars", help="Fetch star counts from the GitHub API", parents=parents)
    UP.add_network_args(f_stars)
    f_stars.set_defaults(handler=_handle_fill_stars)


def _attach_sort_group(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    """Attaches the 'sort' command group and its actions."""
    p_sort = subparsers.add_parser("sort", help="Sort table rows",
                                   description="Commands for reordering table rows.",
                                   formatter_class=UFMT.ActionFirstHelpFormatter)
    sosub = p_sort.add_subparsers(dest="action", title="Action", metavar="Action", required=True,
                                  parser_class=UFMT.ActionParser)

    so_stars = sosub.add_parser("stars", help="Sort rows by 'GitHub Stars', descending", parents=parents)
    so_stars.set_defaults(handler=_handle_sort_stars)


def _attach_view_group(subparsers: argparse._SubParsersAction, *, parents=None) -> None:
    p_view = subparsers.add_parser("view", help="Inspect the document",
                                   description="Read-only commands.",
                                   formatter_class=UFMT.ActionFirstHelpFormatter)
    vsub = p_view.add_subparsers(dest="action", title="Action", metavar="Action", required=True,
                                 parser_class=UFMT.ActionParser)

    v_tables = vsub.add_parser("tables", help="List detected tables and their columns", parents=parents)
    v_tables.add_argument("--max-col-width", type=int, default=60)
    v_tables.add_argument("--show-full", action="store_true", help="Do not truncate cells.")
    v_tables.set_defaults(handler=_handle_view_tables)


def build_parser() -> argparse.ArgumentParser:
    headers = [", ".join(a) for a in (UCOL.WEBSITE, UCOL.GITHUB, UCOL.STARS, UCOL.LINK)]
    ap = UFMT.CustomArgumentParser(
        prog="mdstars",
        description="Maintain GitHub-star tables in a markdown document",
        formatter_class=UFMT.MainHelpFormatter,
        epilog=UP.build_epilog("Recognized headers (case-insensitive):", headers),
        add_help=False,
    )
    common_parent = argparse.ArgumentParser(add_help=False)
    UP.add_common_io_args(common_parent)

    g = ap.add_argument_group("Global Options")
    g.add_argument("-h", "--help", action="help", help=argparse.SUPPRESS)
    g.add_argument("--version", action="version", version=__version__)
    g.add_argument("--commands", action=UFMT.CommandsAction,
                   help="Show the available commands as a tree and exit.")
    subs = ap.add_subparsers(dest="group", metavar="group", required=True,
                             parser_class=UFMT.CustomArgumentParser)

    _attach_col_group(subs, parents=[common_parent])
    _attach_fill_group(subs, parents=[common_parent])
    _attach_sort_group(subs, parents=[common_parent])
    _attach_view_group(subs, parents=[common_parent])
    return ap


def run_handler(lines: list[str], args: argparse.Namespace, logger) -> int:
    handler = getattr(args, "handler", None)
    if handler is None:
        raise ValueError("No command selected. Use --help.")

    report = handler(lines, args)
    if report is None:
        return 0

    if not report.changed:
        sys.stdout.write("No changes needed.\n")
        return 0

    summary = (f"Tables changed: {report.tables_changed}. Rows changed: {report.rows_changed}."
               + (f" API calls: {report.api_calls}." if report.api_calls else ""))
    if getattr(args, "dry_run", False):
        sys.stdout.write(f"[dry-run] {summary} {args.input} not written.\n")
        return 0

    UIO.write_document(args.input, lines, encoding=getattr(args, "encoding", "utf-8"))
    logger.info("Wrote %s", args.input)
    sys.stdout.write(f"Updated {args.input}. {summary}\n")
    return 0


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    parser = build_parser()
    if not argv:
        parser.error("command group is required")
        return 2
    try:
        signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    except (AttributeError, ValueError):
        pass

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return 0 if e.code == 0 else 2

    ULOG.configure(quiet=args.quiet, debug=args.debug, log_file=args.log_file)
    logger = ULOG.get_logger("mdstars.core")

    try:
        lines = UIO.read_document(args.input, encoding=args.encoding)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Cannot read %s: %s", args.input, e)
        if args.debug: traceback.print_exc()
        return 3

    try:
        return run_handler(lines, args, logger)
    except (ValueError, KeyError) as e:
        logger.error(str(e))
        if args.debug: traceback.print_exc()
        return 2
    except OSError as e:
        logger.error("Cannot write %s: %s", args.input, e)
        if args.debug: traceback.print_exc()
        return 3
    except Exception as e:
        logger.error("An unexpected error occurred: %s", e)
        if args.debug: traceback.print_exc()
        return 4


if __name__ == "__main__":
    raise SystemExit(main())
