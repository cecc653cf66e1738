"""Post index and raw content loading."""

import json
from pathlib import Path
from typing import List, Optional

import httpx
from loguru import logger

from blogview.types.base import Post


class ContentLoadError(Exception):
    """Raised when a post's Markdown source cannot be loaded."""

    pass


def load_posts(index_path: str) -> List[Post]:
    """Load the post index, a JSON list of {title, tags, path} objects."""
    with open(index_path, "r", encoding="utf-8") as f:
        entries = json.load(f)

    if not isinstance(entries, list):
        raise ValueError(f"Post index {index_path} must contain a JSON list")

    posts = [Post.from_dict(entry) for entry in entries]
    logger.debug(f"Loaded {len(posts)} posts from {index_path}")
    return posts


def resolve_content_location(post: Post, base_url: Optional[str] = None, root: Optional[str] = None) -> str:
    """Return the URL or filesystem path holding a post's source."""
    if post.path.startswith(("http://", "https://")):
        return post.path
    if base_url:
        return f"{base_url.rstrip('/')}/{post.path.lstrip('/')}"
    return str(Path(root or ".") / post.path)


async def load_post_content(
    post: Post,
    base_url: Optional[str] = None,
    root: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Load the raw Markdown of a post over HTTP or from disk.

    Raises:
        ContentLoadError: If the source is unreachable or the server refuses it
    """
    location = resolve_content_location(post, base_url, root)

    if not location.startswith(("http://", "https://")):
        try:
            return Path(location).read_text(encoding="utf-8")
        except OSError as e:
            raise ContentLoadError(str(e)) from e

    client = http_client or httpx.AsyncClient(follow_redirects=True)
    try:
        response = await client.get(location)
    except httpx.TransportError as e:
        raise ContentLoadError(str(e)) from e
    finally:
        if http_client is None:
            await client.aclose()

    if not response.is_success:
        raise ContentLoadError(f"{response.status_code} {response.reason_phrase}")
    return response.text
