"""Identifier derivation for generated Vibe artifacts.

Identifiers are derived from the module name and the source path, so two
workflows with the same leaf name in different directories never collide.
Renaming a source directory changes the identifier.
"""

from __future__ import annotations

from pathlib import PurePosixPath

SLUG_PREFIX = "bmad"
SEPARATOR = "-"

# Prefixes that only exist because of how the BMAD source tree is nested
SEGMENT_PREFIXES = ("workflow-", "bmad-")
WORKFLOW_FILE_PREFIX = "workflow-"
WORKFLOW_FILE_SUFFIX = ".md"
ROOT_WORKFLOW_SEGMENT = "workflow"


def module_prefix(module: str) -> str:
    """Return the ``bmad-<module>`` prefix every identifier starts with."""
    return f"{SLUG_PREFIX}{SEPARATOR}{module}"


def _strip_segment(segment: str) -> str:
    for prefix in SEGMENT_PREFIXES:
        if segment.startswith(prefix):
            segment = segment[len(prefix):]
    return segment.strip(SEPARATOR)


def build_skill_slug(module: str, rel_path: str) -> str:
    """Derive a workflow skill identifier from its path under ``workflows/``.

    Args:
        module: BMAD module name
        rel_path: POSIX path of the workflow file relative to the module's
            workflows directory

    Returns:
        Identifier such as ``bmad-bmm-planning-create-prd``
    """
    path = PurePosixPath(rel_path)
    parts = [module_prefix(module)]

    for segment in path.parent.parts:
        if segment in ("", "."):
            continue
        stripped = _strip_segment(segment)
        if stripped:
            parts.append(stripped)

    name = path.name
    if name.startswith(WORKFLOW_FILE_PREFIX) and name.endswith(WORKFLOW_FILE_SUFFIX):
        suffix = name[len(WORKFLOW_FILE_PREFIX): -len(WORKFLOW_FILE_SUFFIX)]
        suffix = suffix.strip(SEPARATOR)
        if suffix:
            parts.append(suffix)

    if len(parts) == 1:
        # A bare workflow.md directly under workflows/
        parts.append(ROOT_WORKFLOW_SEGMENT)

    return SEPARATOR.join(parts)


def persona_slug(module: str, stem: str) -> str:
    """Identifier of a persona agent and its prompt."""
    return f"{module_prefix(module)}{SEPARATOR}{stem}"


def task_slug(module: str, stem: str) -> str:
    """Identifier of a task skill."""
    return f"{module_prefix(module)}{SEPARATOR}task{SEPARATOR}{stem}"


def data_container_slug(module: str, subdir: str) -> str:
    """Identifier of a copied supporting-data container."""
    return f"{module_prefix(module)}{SEPARATOR}{subdir}"


def shortcut_name(module: str, skill_slug: str) -> str:
    """Strip the module prefix from a skill identifier."""
    prefix = module_prefix(module) + SEPARATOR
    if skill_slug.startswith(prefix):
        return skill_slug[len(prefix):]
    return skill_slug


def shortcut_slug(module: str, skill_slug: str) -> str:
    """Identifier of the shortcut agent that runs a workflow skill."""
    return persona_slug(module, shortcut_name(module, skill_slug))


def to_title(name: str) -> str:
    """Turn ``create-prd`` into ``Create Prd``."""
    words = name.replace(SEPARATOR, " ").split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words if w)
