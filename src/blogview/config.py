"""Configuration for the blog viewer, read from the environment and .env files."""

import os
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, Field

Strategy = Literal["graphql", "rest", "local"]

ENV_VARS = {
    "owner": "BLOG_OWNER",
    "repo": "BLOG_REPO",
    "branch": "BLOG_BRANCH",
    "token": "GITHUB_TOKEN",
    "strategy": "BLOG_STRATEGY",
    "batch_size": "BLOG_BATCH_SIZE",
    "per_page": "BLOG_PER_PAGE",
    "index_path": "BLOG_INDEX",
    "content_root": "BLOG_CONTENT_ROOT",
    "content_base_url": "BLOG_CONTENT_BASE_URL",
    "repo_path": "BLOG_REPO_PATH",
}


class BlogConfig(BaseModel):
    """Settings selecting the hosted repository and how posts are loaded."""

    owner: str = Field(default="", description="Owner of the hosted repository")
    repo: str = Field(default="", description="Name of the hosted repository")
    branch: str = Field(default="main", description="Branch used for content and history")
    token: Optional[str] = Field(default=None, description="API token, required for GraphQL")
    strategy: Strategy = Field(default="graphql", description="Commit metadata strategy")
    batch_size: int = Field(default=100, gt=0, description="Paths per GraphQL query")
    per_page: int = Field(default=100, description="REST page size, clamped to [1, 500]")
    index_path: str = Field(default="posts.json", description="JSON index listing the posts")
    content_root: Optional[str] = Field(default=None, description="Directory holding post sources")
    content_base_url: Optional[str] = Field(default=None, description="URL prefix for post sources")
    repo_path: Optional[str] = Field(default=None, description="Local checkout for the local strategy")


def load_config(**overrides: Any) -> BlogConfig:
    """Build a BlogConfig from .env, the environment and explicit overrides.

    Overrides set to None are ignored so CLI flags that were not given do not
    mask environment values. Without a token the GraphQL endpoint cannot be
    queried, so the strategy falls back to REST unless one was chosen.
    """
    load_dotenv()

    values: dict = {}
    for name, env_var in ENV_VARS.items():
        value = os.getenv(env_var)
        if value:
            values[name] = value

    values.update({key: value for key, value in overrides.items() if value is not None})

    if not values.get("token") and "strategy" not in values:
        logger.debug("No token configured, using the REST strategy")
        values["strategy"] = "rest"

    return BlogConfig(**values)
