"""Blog viewer workflow using LangGraph to route between views."""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from langgraph.graph import END, StateGraph
from loguru import logger

from blogview.config import BlogConfig, load_config
from blogview.nodes.view_nodes import edit_view_node, find_post, list_view_node, show_view_node
from blogview.posts import load_posts
from blogview.types.state import ViewState

VIEW_NODES = {
    "list": "list_view_node",
    "show": "show_view_node",
    "edit": "edit_view_node",
}


def route_view(state: ViewState) -> str:
    """Pick the node for the requested view, defaulting to the list."""
    return state.get("view") or "list"


def create_workflow():
    """Create the view graph."""
    workflow = StateGraph(ViewState)

    workflow.add_node("list_view_node", list_view_node)
    workflow.add_node("show_view_node", show_view_node)
    workflow.add_node("edit_view_node", edit_view_node)

    workflow.set_conditional_entry_point(route_view, VIEW_NODES)

    workflow.add_edge("list_view_node", END)
    workflow.add_edge("show_view_node", END)
    workflow.add_edge("edit_view_node", END)

    return workflow.compile()


async def run_workflow_async(config: BlogConfig, view: str = "list", post_path: Optional[str] = None) -> ViewState:
    """Run one view of the workflow and return the final state."""
    initial_state: ViewState = {"view": view, "config": config, "errors": []}

    if view in ("show", "edit"):
        posts = load_posts(config.index_path)
        initial_state["posts"] = posts
        initial_state["selected_post"] = find_post(posts, post_path) if post_path else None

    app = create_workflow()
    final_state = await app.ainvoke(initial_state)
    if final_state.get("errors"):
        logger.error(f"Errors encountered: {final_state['errors']}")
    return final_state


def run_workflow(config: BlogConfig, view: str = "list", post_path: Optional[str] = None) -> ViewState:
    """Synchronous wrapper for the async workflow."""
    return asyncio.run(run_workflow_async(config, view, post_path))


def format_listing(state: ViewState) -> List[str]:
    """Format the annotated post list, one line per post."""
    lines = []
    commit_map = state.get("commit_map", {})
    for post in state.get("posts", []):
        info = commit_map.get(post.path)
        tags = ", ".join(post.tags)
        if info is None:
            lines.append(f"{post.title} [{tags}]")
            continue
        lines.append(f"{post.title} [{tags}] - {info.last_modified} by {info.commit_author}: {info.commit_message}")
    return lines


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="View Markdown blog posts annotated with commit metadata")
    parser.add_argument("view", choices=list(VIEW_NODES), nargs="?", default="list", help="View to open")
    parser.add_argument("--post", type=str, help="Path of the post to show or edit")
    parser.add_argument("--index", type=str, help="JSON index listing the posts")
    parser.add_argument("--owner", type=str, help="Owner of the hosted repository")
    parser.add_argument("--repo", type=str, help="Name of the hosted repository")
    parser.add_argument("--branch", type=str, help="Branch to read history from")
    parser.add_argument("--strategy", choices=["graphql", "rest", "local"], help="Commit metadata strategy")
    parser.add_argument("--repo-path", type=str, help="Local checkout used by the local strategy")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)

    if not args.verbose:
        logger.remove()
        logger.add(sys.stderr, level="INFO")

    overrides: Dict[str, Any] = {
        "index_path": args.index,
        "owner": args.owner,
        "repo": args.repo,
        "branch": args.branch,
        "strategy": args.strategy,
        "repo_path": args.repo_path,
    }
    config = load_config(**overrides)

    if args.view in ("show", "edit") and not args.post:
        logger.error(f"--post is required for the {args.view} view")
        sys.exit(2)

    try:
        final_state = run_workflow(config, args.view, args.post)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to open {args.view} view: {e}")
        sys.exit(1)

    if args.view == "list":
        for line in format_listing(final_state):
            print(line)
    elif args.view == "show" and final_state.get("rendered_content"):
        print(final_state["rendered_content"].html)
    elif args.view == "edit" and final_state.get("edit_form"):
        print(final_state["edit_form"]["content"])

    if final_state.get("errors"):
        logger.error("Errors encountered during processing:")
        for error in final_state["errors"]:
            logger.error(f"- {error['node']}: {error['error']}")
        sys.exit(1)


if __name__ == "__main__":
    main()
