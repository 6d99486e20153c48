"""Attribute extraction from the leading tag of BMAD persona documents."""

from __future__ import annotations

import re

from .models import AgentMeta

PERSONA_ATTRIBUTES = ("name", "title", "icon", "description")


def leading_tag(raw: str) -> str:
    """Return the document text up to and including the first '>'.

    Returns an empty string when the document has no closing bracket at all.
    """
    tag_end = raw.find(">")
    if tag_end == -1:
        return ""
    return raw[: tag_end + 1]


def extract_tag_attr(raw: str, attr: str) -> str:
    """Extract a double-quoted attribute value from the leading tag only.

    Attribute-like text deeper in the document is never considered, and an
    attribute name embedded in a longer one (``subtitle`` for ``title``)
    does not match.
    """
    pattern = rf'(?<![\w:-]){re.escape(attr)}\s*=\s*"([^"]*)"'
    match = re.search(pattern, leading_tag(raw))
    if match is None:
        return ""
    return match.group(1)


def extract_agent_meta(slug: str, raw: str) -> AgentMeta:
    """Build persona metadata from a raw agent XML document."""
    values = {attr: extract_tag_attr(raw, attr) for attr in PERSONA_ATTRIBUTES}
    return AgentMeta(slug=slug, **values)
