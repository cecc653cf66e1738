"""Hosting API client.

Covers the REST commit history endpoints used to annotate post listings,
the account and rate-limit probes, and the raw GraphQL transport used by
the batched fetcher in ``blogview.github.graphql``.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx
from loguru import logger

from blogview.github.errors import (
    AuthenticationError,
    ForbiddenError,
    GitHubAPIError,
    GraphQLError,
    NetworkError,
    NotFoundError,
)
from blogview.types.base import FileCommitsResult

DEFAULT_BASE_URL = "https://api.github.com"
USER_AGENT = "Blog-App"
MIN_PER_PAGE = 1
MAX_PER_PAGE = 500


def encode_path(path: str) -> str:
    """Percent-encode each segment of a repository path and rejoin with '/'."""
    return "/".join(quote(segment, safe="!'()*") for segment in path.split("/"))


def clamp_per_page(per_page: int) -> int:
    return max(MIN_PER_PAGE, min(MAX_PER_PAGE, per_page))


def _api_message(response: Optional[httpx.Response]) -> Optional[str]:
    """Extract the reason string the API puts in error bodies, if any."""
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None


class GitHubClient:
    """Async client for the hosting REST and GraphQL APIs."""

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        graphql_url: Optional[str] = None,
        user_agent: str = USER_AGENT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the client.

        Args:
            token: API token sent as ``Authorization: token ...`` when given
            base_url: REST API root
            graphql_url: GraphQL endpoint, defaults to ``{base_url}/graphql``
            user_agent: Client identification string sent with every request
            http_client: Pre-configured httpx client; the caller keeps ownership
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url or f"{self.base_url}/graphql"
        self.user_agent = user_agent
        self._owns_session = http_client is None
        self._session = http_client

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the HTTP session."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(
                timeout=httpx.Timeout(connect=10.0, read=30.0, write=10.0, pool=5.0),
                follow_redirects=True,
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.aclose()
        self._session = None

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def _get(self, url: str) -> httpx.Response:
        if not url.startswith("http"):
            url = f"{self.base_url}{url}"
        return await self.session.get(url, headers=self._headers())

    # ------------------------------------------------------------------
    # REST commit history
    # ------------------------------------------------------------------

    def _commits_url(self, owner: str, repo: str, path: str, branch: str, per_page: int, page: int) -> str:
        return (
            f"{self.base_url}/repos/{owner}/{repo}/commits"
            f"?path={encode_path(path)}&ref={quote(branch, safe='')}&per_page={per_page}&page={page}"
        )

    @staticmethod
    def _raise_for_commit_status(response: httpx.Response, path: str) -> None:
        """Map a failed commit-history response onto the error taxonomy."""
        if response.is_success:
            return
        status = response.status_code
        if status == 404:
            raise NotFoundError(f"file not found: {path}", status_code=status)
        if status == 403:
            raise ForbiddenError(
                "forbidden: authentication required or token scope insufficient",
                status_code=status,
            )
        raise GitHubAPIError(f"failed to fetch commits: {response.reason_phrase}", status_code=status)

    async def _fetch_commit_page(
        self, owner: str, repo: str, path: str, branch: str, per_page: int, page: int
    ) -> Tuple[List[Dict[str, Any]], bool]:
        """Fetch one page of a path's history.

        Returns:
            The page's commit records and whether the Link header announces a next page
        """
        url = self._commits_url(owner, repo, path, branch, per_page, page)
        try:
            response = await self._get(url)
        except httpx.RequestError as e:
            raise NetworkError(f"network error while fetching commits for {path}: {e}") from e

        self._raise_for_commit_status(response, path)
        records = response.json()
        return records, "next" in response.links

    async def get_file_commits(self, owner: str, repo: str, path: str, branch: str) -> List[Dict[str, Any]]:
        """Fetch the latest commit touching a file.

        Returns:
            A list holding at most one raw commit record

        Raises:
            NotFoundError: If the path does not exist at the branch
            ForbiddenError: If the API refuses access
            GitHubAPIError: For any other non-2xx status
            NetworkError: If no response was received
        """
        records, _ = await self._fetch_commit_page(owner, repo, path, branch, per_page=1, page=1)
        return records

    async def _collect_file_history(
        self, owner: str, repo: str, path: str, branch: str, per_page: int
    ) -> FileCommitsResult:
        commits: List[Dict[str, Any]] = []
        page = 1
        try:
            while True:
                records, has_next = await self._fetch_commit_page(owner, repo, path, branch, per_page, page)
                if not records:
                    break
                commits.extend(records)
                if not has_next:
                    break
                page += 1
        except (GitHubAPIError, ValueError) as e:
            logger.warning(f"Failed to fetch history for {path}: {e}")
            status_code = e.status_code if isinstance(e, GitHubAPIError) else None
            return FileCommitsResult(path=path, commits=[], total=0, error=str(e), status_code=status_code)

        logger.debug(f"Fetched {len(commits)} commits for {path} over {page} page(s)")
        return FileCommitsResult(path=path, commits=commits, total=len(commits), error=None)

    async def batch_get_file_commits(
        self, owner: str, repo: str, paths: List[str], branch: str, per_page: int = 100
    ) -> List[FileCommitsResult]:
        """Fetch the full history of several paths concurrently.

        Each path pages sequentially; paths run side by side. A failure on
        one path is reported in its own result and never affects the others.
        """
        per_page = clamp_per_page(per_page)
        tasks = [self._collect_file_history(owner, repo, path, branch, per_page) for path in paths]
        return list(await asyncio.gather(*tasks))

    # ------------------------------------------------------------------
    # Account and rate limit
    # ------------------------------------------------------------------

    async def get_user_info(self) -> Dict[str, Any]:
        """Fetch the authenticated identity.

        Raises:
            ValueError: If the client has no token
            AuthenticationError: If the lookup fails for any reason
        """
        if not self.token:
            raise ValueError("a token is required to fetch the authenticated user")

        try:
            response = await self._get("/user")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            response = e.response if isinstance(e, httpx.HTTPStatusError) else None
            message = f"failed to fetch user info: {e}"
            reason = _api_message(response)
            if reason:
                message = f"{message} ({reason})"
            raise AuthenticationError(
                message, status_code=response.status_code if response is not None else None
            ) from e

    async def get_rate_limit(self) -> Dict[str, Any]:
        """Fetch the current rate-limit counters. Errors propagate as raised by httpx."""
        response = await self._get("/rate_limit")
        response.raise_for_status()
        return response.json()

    # ------------------------------------------------------------------
    # GraphQL transport
    # ------------------------------------------------------------------

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GraphQL query and return its ``data`` object.

        Raises:
            NetworkError: If no response was received
            GitHubAPIError: For non-2xx responses
            GraphQLError: If the response carries errors and no repository data
        """
        payload = {"query": query, "variables": variables or {}}
        try:
            response = await self.session.post(self.graphql_url, json=payload, headers=self._headers())
        except httpx.RequestError as e:
            raise NetworkError(f"network error during graphql query: {e}") from e

        if not response.is_success:
            reason = _api_message(response) or response.reason_phrase
            raise GitHubAPIError(f"graphql request failed: {reason}", status_code=response.status_code)

        body = response.json()
        if not isinstance(body, dict):
            raise GraphQLError("unexpected graphql response")
        data = body.get("data") or {}
        errors = body.get("errors") or []
        if errors and not data.get("repository"):
            raise GraphQLError(errors[0].get("message", "unknown graphql error"))
        if errors:
            logger.warning(f"GraphQL response carried {len(errors)} partial error(s)")
        return data
