import html
from typing import Iterable

NBSP = "&nbsp;"
LINE_BREAK = "<br/>"

UNDERLINE_STYLE = "text-decoration: underline;"
PARAGRAPH_STYLE = "margin: 0 0 0.5em 0;"
COMPACT_PARAGRAPH_STYLE = "margin: 0;"


def escape_html(value: str) -> str:
    """Escape text for use in element content and quoted attributes."""
    return html.escape(value, quote=True)


def wrap(tag: str, content: str, style: str = None) -> str:
    if style:
        return f'<{tag} style="{style}">{content}</{tag}>'
    return f"<{tag}>{content}</{tag}>"


def join(parts: Iterable[str]) -> str:
    return "".join(parts)
