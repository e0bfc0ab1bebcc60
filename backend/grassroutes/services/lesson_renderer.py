# backend/grassroutes/services/lesson_renderer.py
from html import escape
from typing import Iterable, Optional

EMPTY_LESSON_HTML = "<p>No lesson content available.</p>"


def _with_breaks(text: Optional[str]) -> str:
    return escape(text or "").replace("\n", "<br>")


def render_lesson_info(items: Iterable) -> str:
    """
    Render lesson content blocks (ordered) into the HTML shown beside a question.

    All text is escaped before newlines are turned into ``<br>``; list blocks
    put each non-empty line in its own ``<li>``.
    """
    items = list(items)
    if not items:
        return EMPTY_LESSON_HTML

    parts = ['<div class="lesson-info">']
    for item in items:
        content_type = getattr(item.content_type, "value", item.content_type)
        title = escape(item.title) if item.title else ""

        if content_type == "header":
            parts.append(f'<h3 class="lesson-header">{title}</h3>')
            parts.append(f"<p>{_with_breaks(item.content)}</p>")
        elif content_type == "paragraph":
            parts.append('<div class="lesson-paragraph">')
            if title:
                parts.append(f"<h4>{title}</h4>")
            parts.append(f"<p>{_with_breaks(item.content)}</p>")
            parts.append("</div>")
        elif content_type == "tip":
            parts.append('<div class="lesson-tip">')
            parts.append(f"<p><strong>{title}:</strong> {_with_breaks(item.content)}</p>")
            parts.append("</div>")
        elif content_type == "list":
            parts.append('<div class="lesson-list">')
            if title:
                parts.append(f"<h4>{title}</h4>")
            parts.append("<ul>")
            for line in (item.content or "").split("\n"):
                if line.strip():
                    parts.append(f"<li>{escape(line.strip())}</li>")
            parts.append("</ul>")
            parts.append("</div>")
        else:
            parts.append(f"<p>{escape(item.content or '')}</p>")

    parts.append("</div>")
    return "".join(parts)
