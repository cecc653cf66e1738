"""Batched last-commit lookup over the GraphQL API.

Paths are split into consecutive batches and each batch becomes one aggregate
query in which every path is addressed through its own alias. Batches run one
after another so a single fetch never has more than one query in flight.
"""

from datetime import datetime, tzinfo
from typing import Any, Dict, List, Optional

from loguru import logger

from blogview.github.client import GitHubClient
from blogview.github.errors import GitHubAPIError
from blogview.types.base import NO_COMMIT_MESSAGE, UNKNOWN_AUTHOR, UNKNOWN_TIME, CommitInfo

DEFAULT_BATCH_SIZE = 100
DATE_FORMAT = "%B %d, %Y %H:%M:%S"

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


def partition_paths(paths: List[str], batch_size: int) -> List[List[str]]:
    """Split paths into consecutive, order-preserving slices of at most batch_size."""
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [paths[i : i + batch_size] for i in range(0, len(paths), batch_size)]


def make_alias(batch_index: int, position: int) -> str:
    """Field alias for the path at `position` of batch `batch_index`."""
    return f"b{batch_index}_f{position}"


def quote_graphql_string(value: str) -> str:
    """Render value as a GraphQL string literal."""
    out = []
    for char in value:
        if char in _ESCAPES:
            out.append(_ESCAPES[char])
        elif ord(char) < 0x20:
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def build_batch_query(branch: str, paths: List[str], batch_index: int) -> str:
    """Build one aggregate query requesting the latest commit of every path."""
    expression = quote_graphql_string(branch)
    selections = []
    for position, path in enumerate(paths):
        alias = make_alias(batch_index, position)
        selections.append(
            f"""    {alias}: object(expression: {expression}) {{
      ... on Commit {{
        latestCommit: history(first: 1, path: {quote_graphql_string(path)}) {{
          nodes {{
            oid
            committedDate
            message
            author {{ name }}
          }}
        }}
      }}
    }}"""
        )

    body = "\n".join(selections)
    return f"""query($owner: String!, $name: String!) {{
  repository(owner: $owner, name: $name) {{
{body}
  }}
}}"""


def format_commit_date(value: str, tz: Optional[tzinfo] = None) -> str:
    """Format an ISO-8601 timestamp as a long date and time in `tz` (local zone by default)."""
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return moment.astimezone(tz).strftime(DATE_FORMAT)


def commit_info_from_node(node: Dict[str, Any], tz: Optional[tzinfo] = None) -> CommitInfo:
    """Shape one history node into CommitInfo, substituting sentinels for missing fields."""
    author = (node.get("author") or {}).get("name") or UNKNOWN_AUTHOR
    committed = node.get("committedDate")
    try:
        last_modified = format_commit_date(committed, tz) if committed else UNKNOWN_TIME
    except ValueError:
        last_modified = UNKNOWN_TIME
    return CommitInfo(
        last_modified=last_modified,
        commit_author=author,
        commit_message=node.get("message") or NO_COMMIT_MESSAGE,
        commit_oid=node.get("oid"),
    )


def resolve_batch(
    repository: Optional[Dict[str, Any]],
    paths: List[str],
    batch_index: int,
    tz: Optional[tzinfo] = None,
) -> Dict[str, CommitInfo]:
    """Resolve every path of a batch against the repository object of its response."""
    repository = repository or {}
    results: Dict[str, CommitInfo] = {}
    for position, path in enumerate(paths):
        entry = repository.get(make_alias(batch_index, position))
        if not entry:
            results[path] = CommitInfo.missing_file()
            continue

        nodes = (entry.get("latestCommit") or {}).get("nodes") or []
        if not nodes:
            results[path] = CommitInfo.empty_history()
            continue

        results[path] = commit_info_from_node(nodes[0], tz)
    return results


async def fetch_file_commits_via_graphql(
    client: GitHubClient,
    owner: str,
    repo: str,
    branch: str,
    file_paths: List[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
    tz: Optional[tzinfo] = None,
) -> Dict[str, CommitInfo]:
    """Look up the latest commit of each path, one aggregate query per batch.

    A failed query marks only the paths of its own batch as failed; every
    requested path appears exactly once in the result.
    """
    unique_paths = list(dict.fromkeys(file_paths))
    batches = partition_paths(unique_paths, batch_size)
    commit_map: Dict[str, CommitInfo] = {}

    for batch_index, batch in enumerate(batches):
        logger.debug(f"Querying batch {batch_index + 1}/{len(batches)} ({len(batch)} paths)")
        query = build_batch_query(branch, batch, batch_index)
        try:
            data = await client.graphql(query, {"owner": owner, "name": repo})
        except (GitHubAPIError, ValueError) as e:
            logger.warning(f"Batch {batch_index} failed: {e}")
            commit_map.update({path: CommitInfo.query_failed(e) for path in batch})
            continue

        commit_map.update(resolve_batch(data.get("repository"), batch, batch_index, tz))

    return commit_map
