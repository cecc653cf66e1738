"""Types for rendering post content."""

import html
from dataclasses import dataclass, field
from typing import Dict, Any, List


@dataclass
class RenderOptions:
    """Options for controlling the Markdown conversion."""

    tables: bool = True
    task_lists: bool = True
    strikethrough: bool = True
    legacy_fences: bool = True


@dataclass
class RenderedContent:
    """A post rendered for display."""

    title: str
    html: str
    markdown: str
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_tag_elements(self) -> List[str]:
        """Render tags the way the post header shows them."""
        return [f'<span class="tag">{html.escape(tag)}</span>' for tag in self.tags]
