"""Commit metadata lookup behind a single interface.

Three strategies produce the same path -> CommitInfo mapping:

- ``graphql``: batched aggregate queries (needs a token)
- ``rest``: per-path paginated history, all paths concurrently
- ``local``: a local checkout read with GitPython
"""

import asyncio
from datetime import tzinfo
from typing import Any, Dict, List, Optional

from git import Repo
from git.exc import BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError
from loguru import logger

from blogview.github.client import GitHubClient
from blogview.github.graphql import (
    DEFAULT_BATCH_SIZE,
    DATE_FORMAT,
    fetch_file_commits_via_graphql,
    format_commit_date,
)
from blogview.types.base import (
    NO_COMMIT_MESSAGE,
    UNKNOWN_AUTHOR,
    UNKNOWN_TIME,
    CommitInfo,
    FileCommitsResult,
)

STRATEGIES = ("graphql", "rest", "local")


def commit_info_from_rest(record: Dict[str, Any], tz: Optional[tzinfo] = None) -> CommitInfo:
    """Shape a raw REST commit record into CommitInfo."""
    commit = record.get("commit") or {}
    author = commit.get("author") or {}
    committer = commit.get("committer") or {}
    date = committer.get("date") or author.get("date")
    try:
        last_modified = format_commit_date(date, tz) if date else UNKNOWN_TIME
    except ValueError:
        last_modified = UNKNOWN_TIME

    return CommitInfo(
        last_modified=last_modified,
        commit_author=author.get("name") or UNKNOWN_AUTHOR,
        commit_message=commit.get("message") or NO_COMMIT_MESSAGE,
        commit_oid=record.get("sha"),
    )


def commit_info_from_history(result: FileCommitsResult, tz: Optional[tzinfo] = None) -> CommitInfo:
    """Shape one path's REST history result, newest commit first."""
    if result.status_code == 404:
        return CommitInfo.missing_file()
    if result.error is not None:
        return CommitInfo.query_failed(result.error)
    if not result.commits:
        return CommitInfo.empty_history()
    return commit_info_from_rest(result.commits[0], tz)


class CommitMetadataFetcher:
    """Fetch last-modified metadata for post paths with a configurable strategy."""

    def __init__(
        self,
        strategy: str = "graphql",
        client: Optional[GitHubClient] = None,
        repo_path: Optional[str] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        per_page: int = 100,
        tz: Optional[tzinfo] = None,
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy {strategy!r}, expected one of {', '.join(STRATEGIES)}")
        if strategy in ("graphql", "rest") and client is None:
            raise ValueError(f"The {strategy} strategy needs a GitHubClient")
        if strategy == "local" and not repo_path:
            raise ValueError("The local strategy needs a repository path")

        self.strategy = strategy
        self.client = client
        self.repo_path = repo_path
        self.batch_size = batch_size
        self.per_page = per_page
        self.tz = tz

    async def fetch(self, owner: str, repo: str, branch: str, paths: List[str]) -> Dict[str, CommitInfo]:
        """Return exactly one CommitInfo per distinct path."""
        unique_paths = list(dict.fromkeys(paths))
        logger.info(f"Fetching commit metadata for {len(unique_paths)} paths via {self.strategy}")

        if self.strategy == "graphql":
            return await fetch_file_commits_via_graphql(
                self.client, owner, repo, branch, unique_paths, batch_size=self.batch_size, tz=self.tz
            )
        if self.strategy == "rest":
            results = await self.client.batch_get_file_commits(
                owner, repo, unique_paths, branch, per_page=self.per_page
            )
            return {result.path: commit_info_from_history(result, self.tz) for result in results}
        return await asyncio.to_thread(self._fetch_local, branch, unique_paths)

    def _fetch_local(self, branch: str, paths: List[str]) -> Dict[str, CommitInfo]:
        try:
            repo = Repo(self.repo_path)
            head = repo.commit(branch)
        except (BadName, GitCommandError, InvalidGitRepositoryError, NoSuchPathError, ValueError) as e:
            logger.warning(f"Cannot resolve {branch} in {self.repo_path}: {e}")
            return {path: CommitInfo.query_failed(e) for path in paths}

        commit_map: Dict[str, CommitInfo] = {}
        for path in paths:
            try:
                head.tree.join(path)
            except KeyError:
                commit_map[path] = CommitInfo.missing_file()
                continue

            latest = next(repo.iter_commits(head, paths=path, max_count=1), None)
            if latest is None:
                commit_map[path] = CommitInfo.empty_history()
                continue

            commit_map[path] = CommitInfo(
                last_modified=latest.committed_datetime.astimezone(self.tz).strftime(DATE_FORMAT),
                commit_author=latest.author.name or UNKNOWN_AUTHOR,
                commit_message=latest.message.strip() or NO_COMMIT_MESSAGE,
                commit_oid=latest.hexsha,
            )
        return commit_map
