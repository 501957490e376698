from __future__ import annotations
import argparse
import os

from mdstars.fetch import DEFAULT_MAX_REDIRECTS, DEFAULT_TIMEOUT

DEFAULT_DOCUMENT = "README.md"


def build_epilog(title: str, items: list[str]) -> str:
    if not items:
        return ""
    width = max(len(x) for x in items)
    lines = ["", title]
    for x in items:
        pad = " " * (width - len(x))
        lines.append(f"  {x}{pad}  ")
    return "\n".join(lines)


def add_common_io_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("I/O")
    g.add_argument("-i", "--input", default=DEFAULT_DOCUMENT,
                   help=f"Markdown document to edit in place (default: {DEFAULT_DOCUMENT}).")
    g.add_argument("--encoding", default="utf-8")
    g.add_argument("--dry-run", dest="dry_run", action="store_true",
                   help="Report what would change without rewriting the document.")
    g.add_argument("--quiet", action="store_true")
    g.add_argument("--debug", action="store_true")
    g.add_argument("--log-file", dest="log_file")


def add_network_args(ap: argparse.ArgumentParser) -> None:
    g = ap.add_argument_group("Network")
    g.add_argument("--token", default=os.environ.get("GITHUB_TOKEN", ""),
                   help="GitHub token for higher API rate limits (default: $GITHUB_TOKEN).")
    g.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT,
                   help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT:g}).")
    g.add_argument("--max-redirects", dest="max_redirects", type=int, default=DEFAULT_MAX_REDIRECTS,
                   help=f"Redirect hops to follow per request (default: {DEFAULT_MAX_REDIRECTS}).")
