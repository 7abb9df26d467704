"""
Tree lookups shared by every field extractor.

Paths are written CSS-child style (``"tenor > months"``): the first step may
sit anywhere below the queried node, each following step must be a direct
child of the previous one. Matching is on local names so documents with or
without a default namespace behave the same.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Optional, Sequence

from lxml import etree


def _step(tag: str) -> str:
    return f"*[local-name()='{tag}']"


@lru_cache(maxsize=None)
def compile_path(path: str, include_self: bool = False) -> etree.XPath:
    """
    Translate a ``"a > b > c"`` path into a compiled XPath expression.

    With ``include_self`` the first step may also match the context element;
    whole-document queries use it so the root element is searchable.
    """

    steps = [part.strip() for part in path.split(">") if part.strip()]
    if not steps:
        raise ValueError(f"Empty selector path: {path!r}")
    axis = "descendant-or-self::" if include_self else "descendant::"
    expr = axis + "/".join(_step(tag) for tag in steps)
    return etree.XPath(expr)


def _evaluate(node: Any, path: str) -> List[Any]:
    # A parsed tree evaluates against its root element.
    return list(compile_path(path, hasattr(node, "getroot"))(node))


def node_text(node: Any) -> str:
    """Concatenated, trimmed text of an element and its descendants."""

    if node is None:
        return ""
    return "".join(node.itertext()).strip()


def first_matching(node: Any, path: str) -> Optional[Any]:
    """Return the first element matching ``path`` below ``node`` (document order)."""

    if node is None:
        return None
    found = _evaluate(node, path)
    return found[0] if found else None


def first_matching_text(node: Any, candidate_paths: Sequence[str]) -> str:
    """
    Try each candidate path in order and return the first non-empty text.

    Only the first element a path matches is considered; when its text is empty
    the next candidate is tried. Returns "" when ``node`` is None or nothing
    matches.
    """

    if node is None:
        return ""
    for path in candidate_paths:
        text = node_text(first_matching(node, path))
        if text:
            return text
    return ""


def list_matching(node: Any, tag_name: str) -> List[Any]:
    """All descendant elements named ``tag_name``, in document order."""

    if node is None:
        return []
    return _evaluate(node, tag_name)
