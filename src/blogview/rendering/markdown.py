"""Markdown to HTML conversion for post bodies."""

import html
import re
from typing import Optional

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from blogview.types.render import RenderOptions

# Four-tilde fences with a braced language tag, then bare ones
LEGACY_FENCE_WITH_LANG = re.compile(r"~~~~\{(.*?)\}\n([\s\S]*?)~~~~")
LEGACY_FENCE = re.compile(r"~~~~\n([\s\S]*?)~~~~")


def escape_html(text: str) -> str:
    """Escape &, <, >, " and ' for safe inclusion in markup."""
    return html.escape(text, quote=True)


def preprocess_legacy_fences(text: str) -> str:
    """Rewrite legacy four-tilde code fences into escaped <pre><code> blocks.

    The body is escaped here so the converter passes it through as a raw
    HTML block instead of reading it as Markdown.
    """
    text = LEGACY_FENCE_WITH_LANG.sub(
        lambda m: f'<pre><code class="language-{escape_html(m.group(1))}">{escape_html(m.group(2))}</code></pre>',
        text,
    )
    return LEGACY_FENCE.sub(lambda m: f"<pre><code>{escape_html(m.group(1))}</code></pre>", text)


def create_converter(options: Optional[RenderOptions] = None) -> MarkdownIt:
    """Build a converter with the extensions selected in options."""
    options = options or RenderOptions()
    md = MarkdownIt("commonmark", {"html": True})
    if options.tables:
        md.enable("table")
    if options.strikethrough:
        md.enable("strikethrough")
    if options.task_lists:
        md.use(tasklists_plugin)
    return md


def render_markdown(text: str, options: Optional[RenderOptions] = None) -> str:
    """Render a post's Markdown source to an HTML fragment."""
    options = options or RenderOptions()
    if options.legacy_fences:
        text = preprocess_legacy_fences(text)
    return create_converter(options).render(text)
