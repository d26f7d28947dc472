import html

import markdown

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]


def render_markdown(content: str) -> str:
    """Render note content for the viewer; raw HTML in notes is escaped first."""
    if not content:
        return ""
    return markdown.markdown(html.escape(content, quote=False), extensions=MARKDOWN_EXTENSIONS)
