"""State management types for the blog viewer."""

from typing import Any, Dict, List, Literal, Optional, TypedDict

from .base import CommitInfo, Post
from .render import RenderedContent
from blogview.config import BlogConfig

ViewName = Literal["list", "show", "edit"]

CONTAINER_ACTIVE = "container-active"
CONTAINER_HIDDEN = "container-hidden"
CONTAINERS = ("list", "show", "edit")


class EditForm(TypedDict):
    """Values populating the inline edit form."""

    title: str
    tags: str
    content: str


class ViewState(TypedDict, total=False):
    """
    Shared state passed between view nodes.

    Using TypedDict for LangGraph compatibility. total=False means all fields
    are optional.
    """

    # Routing
    view: ViewName
    containers: Dict[str, str]  # container name -> css class

    # List view
    posts: List[Post]
    commit_map: Dict[str, CommitInfo]

    # Show view
    selected_post: Optional[Post]
    rendered_content: Optional[RenderedContent]
    show_loading: bool
    show_error: Optional[str]

    # Edit view
    edit_form: EditForm
    edit_status: str
    edit_status_class: str

    # Global state
    config: BlogConfig
    errors: List[Dict[str, Any]]
