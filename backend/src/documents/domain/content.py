"""Content tree helpers.

Documents store their body as a JSON tree::

    {"type": "doc", "content": [
        {"type": "paragraph", "content": [{"type": "text", "text": "..."}]},
    ]}

Only ``doc``, ``paragraph`` and ``text`` are required; any other node type is
accepted and stored as-is so editors can add block and inline kinds freely.
"""

from typing import Any

from shared.exceptions import ValidationError

MAX_TITLE_LENGTH = 500


def empty_content() -> dict[str, Any]:
    return {"type": "doc", "content": []}


def validate_content(content: Any) -> dict[str, Any]:
    """Check the outer shape of a content tree before it is written.

    Only the root is enforced: it must be a ``doc`` node whose ``content`` is
    a list of node objects. Everything below that is editor territory.
    """
    if not isinstance(content, dict):
        raise ValidationError("Content must be a JSON object")
    if content.get("type") != "doc":
        raise ValidationError("Content root must be a 'doc' node")
    children = content.get("content", [])
    if not isinstance(children, list):
        raise ValidationError("Content 'content' must be a list of nodes")
    for child in children:
        if not isinstance(child, dict) or not isinstance(child.get("type"), str):
            raise ValidationError("Every content node needs a string 'type'")
    return content


def normalize_title(title: Any, default: str) -> str:
    if title is None:
        return default
    if not isinstance(title, str):
        raise ValidationError("Title must be a string")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return title or default
