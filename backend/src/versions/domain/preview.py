from typing import Any

NO_PREVIEW = "No preview available"
ELLIPSIS = "..."


def content_preview(content: Any, max_length: int = 100) -> str:
    """Short plain-text summary of a content tree.

    Blocks are visited in document order; each block whose children carry
    text contributes those texts concatenated, and blocks are joined with a
    single space. Node shapes that are not understood contribute nothing.
    """
    if isinstance(content, str):
        text = content
    else:
        text = " ".join(block for block in _block_texts(content) if block)
    if not text:
        return NO_PREVIEW
    if len(text) > max_length:
        return text[:max_length] + ELLIPSIS
    return text


def _block_texts(node: Any):
    if not isinstance(node, dict):
        return
    children = node.get("content")
    if not isinstance(children, list):
        return

    leaves = [child for child in children if _is_text_leaf(child)]
    if leaves and node.get("type") != "doc":
        yield "".join(leaf["text"] for leaf in leaves)

    for child in children:
        if not _is_text_leaf(child):
            yield from _block_texts(child)


def _is_text_leaf(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("text"), str)
