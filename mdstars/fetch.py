"""
Outbound HTTP for link resolution: plain page fetches with bounded redirect
following, and GitHub repository lookups.

All calls return result objects instead of raising; callers decide what a
failure means for the row being resolved.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .utils.logging import get_logger

logger = get_logger("mdstars.fetch")

GITHUB_API = "https://api.github.com"
USER_AGENT = "mdstars-link-resolver/1.0"
PAGE_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
API_ACCEPT = "application/vnd.github+json"
DEFAULT_TIMEOUT = 12.0
DEFAULT_MAX_REDIRECTS = 5
RATE_LIMITED = "rate-limited"
TOO_MANY_REDIRECTS = "Too many redirects"


@dataclass
class FetchResult:
    ok: bool
    body: str = ""
    error: Optional[str] = None
    status: Optional[int] = None
    visited: List[str] = field(default_factory=list)


@dataclass
class StarsResult:
    ok: bool
    stars: Optional[int] = None
    error: Optional[str] = None
    status: Optional[int] = None
    remaining: Optional[str] = None
    reset: Optional[int] = None

    @property
    def rate_limited(self) -> bool:
        return self.error == RATE_LIMITED


def _is_redirect(response: httpx.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


class LinkResolutionClient:
    """
    Thin async wrapper over ``httpx.AsyncClient``.

    Redirects are followed by hand so the hop budget and the visited chain
    are under our control. Intended to be awaited one request at a time.
    """

    def __init__(self, *, token: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
                 max_redirects: int = DEFAULT_MAX_REDIRECTS,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.token = token or None
        self.max_redirects = max_redirects
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=False,
            transport=transport,
            headers={"User-Agent": USER_AGENT},
        )

    async def __aenter__(self) -> "LinkResolutionClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, url: str, headers: Dict[str, str], max_redirects: int):
        """GET with manual redirects. Returns (response | None, error, visited)."""
        visited: List[str] = []
        current = url
        hops_left = max_redirects
        while True:
            visited.append(current)
            try:
                response = await self._client.get(current, headers=headers)
            except httpx.TimeoutException:
                return None, "timeout", visited
            except httpx.HTTPError as e:
                return None, str(e) or type(e).__name__, visited
            if not _is_redirect(response):
                return response, None, visited
            if hops_left <= 0:
                return response, TOO_MANY_REDIRECTS, visited
            current = str(response.url.join(response.headers["location"]))
            hops_left -= 1
            logger.debug("Redirect -> %s", current)

    async def fetch_page(self, url: str, max_redirects: Optional[int] = None) -> FetchResult:
        """Fetch ``url`` as text. Non-2xx terminal statuses are failures."""
        hops = self.max_redirects if max_redirects is None else max_redirects
        response, error, visited = await self._get(url, {"Accept": PAGE_ACCEPT}, hops)
        status = response.status_code if response is not None else None
        if error is not None:
            return FetchResult(ok=False, error=error, status=status, visited=visited)
        if not 200 <= status < 300:
            return FetchResult(ok=False, error=f"HTTP {status}", status=status, visited=visited)
        return FetchResult(ok=True, body=response.text, status=status, visited=visited)

    async def fetch_repo_stars(self, repo: str) -> StarsResult:
        """
        Look up ``owner/name`` on the GitHub REST API.

        A 403 with ``x-ratelimit-remaining: 0`` is reported as ``rate-limited``
        with the ``x-ratelimit-reset`` epoch seconds attached.
        """
        owner, _, name = repo.partition("/")
        url = f"{GITHUB_API}/repos/{owner.lower()}/{name.lower()}"
        headers = {"Accept": API_ACCEPT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response, error, _ = await self._get(url, headers, self.max_redirects)
        if response is None:
            return StarsResult(ok=False, error=error)

        status = response.status_code
        remaining = response.headers.get("x-ratelimit-remaining")
        reset = _int_or_none(response.headers.get("x-ratelimit-reset"))
        if error is not None:
            return StarsResult(ok=False, error=error, status=status, remaining=remaining, reset=reset)
        if status == 403 and remaining == "0":
            return StarsResult(ok=False, error=RATE_LIMITED, status=status,
                               remaining=remaining, reset=reset)
        if not 200 <= status < 300:
            return StarsResult(ok=False, error=response.text or f"HTTP {status}", status=status,
                               remaining=remaining, reset=reset)
        try:
            payload: Any = response.json()
        except ValueError:
            return StarsResult(ok=False, error="invalid-json", status=status)

        stars = payload.get("stargazers_count") if isinstance(payload, dict) else None
        if isinstance(stars, bool) or not isinstance(stars, int):
            stars = None
        return StarsResult(ok=True, stars=stars, status=status, remaining=remaining, reset=reset)


def _int_or_none(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None
