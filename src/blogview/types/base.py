"""Base types used across the blog viewer."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

# Sentinel values substituted when real commit data is unavailable
QUERY_FAILED = "query failed"
UNKNOWN_TIME = "unknown time"
UNKNOWN = "unknown"
UNKNOWN_AUTHOR = "unknown author"
NO_FILE_DATA = "no file data found"
NO_COMMIT_HISTORY = "no commit history"
NO_COMMIT_MESSAGE = "no commit message"

ERROR_SUMMARY_LENGTH = 30


@dataclass
class Post:
    """A Markdown-backed blog post."""

    title: str
    path: str
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Post":
        tags = data.get("tags") or []
        if isinstance(tags, str):
            tags = [tag.strip() for tag in tags.split(",") if tag.strip()]
        return cls(title=data.get("title", ""), path=data["path"], tags=list(tags))


class CommitInfo(BaseModel):
    """Last-modified metadata for a single file path."""

    last_modified: str = Field(..., description="Display date of the latest commit, or a sentinel")
    commit_author: str = Field(..., description="Author display name, or a sentinel")
    commit_message: str = Field(..., description="Commit message, or a sentinel")
    commit_oid: Optional[str] = Field(default=None, description="Commit identifier when known")

    @classmethod
    def query_failed(cls, error: Union[Exception, str]) -> "CommitInfo":
        """Sentinel for a path whose lookup failed as a whole."""
        summary = str(error)[:ERROR_SUMMARY_LENGTH]
        return cls(
            last_modified=QUERY_FAILED,
            commit_author=UNKNOWN,
            commit_message=f"{QUERY_FAILED}: {summary}",
        )

    @classmethod
    def missing_file(cls) -> "CommitInfo":
        return cls(last_modified=UNKNOWN_TIME, commit_author=UNKNOWN, commit_message=NO_FILE_DATA)

    @classmethod
    def empty_history(cls) -> "CommitInfo":
        return cls(last_modified=UNKNOWN_TIME, commit_author=UNKNOWN, commit_message=NO_COMMIT_HISTORY)


@dataclass
class FileCommitsResult:
    """Outcome of paging through one path's REST commit history."""

    path: str
    commits: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    error: Optional[str] = None
    status_code: Optional[int] = None
