"""Shared fixtures: a small BMAD source tree on disk."""

from __future__ import annotations

from pathlib import Path

import pytest

ANALYST_XML = """\
<agent id="analyst" title="Analyst" icon="📊">
  <persona>
    <role>Business analyst. Uses name="Mallory" in examples.</role>
  </persona>
</agent>
"""

DEV_XML = """\
<agent id="dev" name="Amelia" title="Developer Agent" icon="💻" description="Implements stories">
  <activation>Load the story file.</activation>
</agent>
"""

CREATE_SPEC_WORKFLOW = """\
# Create Spec

Produce a specification in `{planning_artifacts}`.
"""


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def source_roots(tmp_path: Path) -> tuple[Path, Path]:
    """Create bmad-bundles and BMAD-METHOD trees for module ``demo``."""
    bundles = tmp_path / "bmad-bundles"
    method = tmp_path / "BMAD-METHOD"

    agents = bundles / "demo" / "agents"
    _write(agents / "analyst.xml", ANALYST_XML)
    _write(agents / "dev.xml", DEV_XML)
    _write(agents / "README.md", "not an agent")

    module = method / "src" / "modules" / "demo"
    planning = module / "workflows" / "planning"
    _write(planning / "workflow-create-spec.md", CREATE_SPEC_WORKFLOW)
    _write(planning / "steps" / "step-01-init.md", "Ask for the project name.")
    _write(planning / "steps" / "notes.txt", "ignored, not markdown")
    _write(planning / "spec-template.md", "# {{title}}")
    _write(planning / "data" / "fields.csv", "field,required\nname,yes")

    _write(module / "workflows" / "dev-story" / "workflow.md", "# Dev Story\n\nImplement it.")
    # Same identifier as the analyst persona: the shortcut must not replace it
    _write(module / "workflows" / "analyst" / "workflow.md", "# Analyst Workflow")

    _write(module / "tasks" / "review.md", "# Review\n\nReview the change.")
    _write(module / "data" / "glossary.md", "# Glossary")

    return bundles, method


@pytest.fixture
def vibe_home(tmp_path: Path) -> Path:
    """Empty target Vibe home."""
    home = tmp_path / "vibe-home"
    home.mkdir()
    return home
