"""View nodes switching between the post list, the rendered post and the edit form."""

from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger

from blogview.config import BlogConfig
from blogview.fetchers import CommitMetadataFetcher
from blogview.github.client import GitHubClient
from blogview.github.errors import GitHubAPIError
from blogview.posts import ContentLoadError, load_post_content, load_posts
from blogview.rendering.markdown import render_markdown
from blogview.types.base import Post
from blogview.types.render import RenderedContent
from blogview.types.state import CONTAINER_ACTIVE, CONTAINER_HIDDEN, CONTAINERS, ViewName, ViewState


def switch_to(view: ViewName) -> ViewState:
    """Make `view` the only active container."""
    containers = {name: CONTAINER_ACTIVE if name == view else CONTAINER_HIDDEN for name in CONTAINERS}
    return {"view": view, "containers": containers}


def create_github_client(config: BlogConfig) -> GitHubClient:
    return GitHubClient(token=config.token)


def build_fetcher(config: BlogConfig, client: GitHubClient) -> CommitMetadataFetcher:
    return CommitMetadataFetcher(
        strategy=config.strategy,
        client=client,
        repo_path=config.repo_path,
        batch_size=config.batch_size,
        per_page=config.per_page,
    )


def find_post(posts: List[Post], path: str) -> Optional[Post]:
    return next((post for post in posts if post.path == path), None)


def _record_error(state: ViewState, node: str, error: Exception) -> List[Dict]:
    errors = list(state.get("errors", []))
    errors.append({"node": node, "error": str(error), "timestamp": datetime.now()})
    return errors


async def list_view_node(state: ViewState) -> ViewState:
    """Show the post list annotated with last-modified metadata."""
    logger.info("Executing List View Node")
    config = state["config"]

    try:
        posts = state["posts"] if state.get("posts") is not None else load_posts(config.index_path)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Failed to load post index: {e}")
        return {
            **state,
            **switch_to("list"),
            "posts": [],
            "commit_map": {},
            "errors": _record_error(state, "list_view", e),
        }

    new_state: ViewState = {**state, **switch_to("list"), "posts": posts}

    try:
        async with create_github_client(config) as client:
            fetcher = build_fetcher(config, client)
            commit_map = await fetcher.fetch(config.owner, config.repo, config.branch, [post.path for post in posts])
    except (GitHubAPIError, ValueError) as e:
        logger.error(f"Failed to fetch commit metadata: {e}")
        new_state["errors"] = _record_error(state, "list_view", e)
        commit_map = {}

    logger.info(f"Annotated {len(commit_map)} of {len(posts)} posts")
    new_state["commit_map"] = commit_map
    return new_state


async def show_view_node(state: ViewState) -> ViewState:
    """Load a post's Markdown and render it for display."""
    logger.info("Executing Show View Node")
    config = state["config"]
    post = state.get("selected_post")

    new_state: ViewState = {
        **state,
        **switch_to("show"),
        "show_loading": True,
        "show_error": None,
        "rendered_content": None,
    }
    if post is None:
        error = ValueError("no post selected")
        new_state.update(show_loading=False, show_error=f"load failed: {error}")
        new_state["errors"] = _record_error(state, "show_view", error)
        return new_state

    try:
        markdown = await load_post_content(post, config.content_base_url, config.content_root)
    except ContentLoadError as e:
        logger.error(f"Failed to load post content: {e}")
        new_state.update(show_loading=False, show_error=f"load failed: {e}")
        new_state["errors"] = _record_error(state, "show_view", e)
        return new_state

    new_state["rendered_content"] = RenderedContent(
        title=post.title,
        html=render_markdown(markdown),
        markdown=markdown,
        tags=list(post.tags),
        metadata={"path": post.path},
    )
    new_state["show_loading"] = False
    return new_state


async def edit_view_node(state: ViewState) -> ViewState:
    """Populate the edit form with a post's title, tags and raw Markdown."""
    logger.info("Executing Edit View Node")
    config = state["config"]
    post = state.get("selected_post")

    new_state: ViewState = {**state, **switch_to("edit"), "edit_status": "", "edit_status_class": "status"}
    if post is None:
        error = ValueError("no post selected")
        new_state["edit_form"] = {"title": "", "tags": "", "content": ""}
        new_state.update(edit_status=f"load failed: {error}", edit_status_class="status error")
        new_state["errors"] = _record_error(state, "edit_view", error)
        return new_state

    new_state["edit_form"] = {"title": post.title, "tags": ",".join(post.tags), "content": ""}
    try:
        new_state["edit_form"]["content"] = await load_post_content(
            post, config.content_base_url, config.content_root
        )
    except ContentLoadError as e:
        logger.error(f"Failed to load edit content: {e}")
        new_state.update(edit_status=f"load failed: {e}", edit_status_class="status error")
        new_state["errors"] = _record_error(state, "edit_view", e)

    return new_state
