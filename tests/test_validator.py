"""Tests for Vibe home consistency validation."""

from pathlib import Path

import pytest

from bmad2vibe.compiler import ArtifactBuilder
from bmad2vibe.models import AgentMeta, SafetyTier
from bmad2vibe.safety import SafetyClassifier
from bmad2vibe.validator import ConsistencyValidator, is_plain_identifier

LONG_PROMPT = "# Prompt\n\n" + "Follow the workflow instructions carefully. " * 3


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestConsistencyValidator:
    """Test each cross-artifact check."""

    @pytest.fixture
    def builder(self) -> ArtifactBuilder:
        """Builder used to produce well-formed artifacts."""
        return ArtifactBuilder(SafetyClassifier())

    @pytest.fixture
    def home(self, tmp_path: Path, builder: ArtifactBuilder) -> Path:
        """A consistent Vibe home with one persona and one shortcut."""
        root = tmp_path / "vibe"
        persona = builder.build_persona_agent(
            "demo",
            AgentMeta(slug="pm", title="PM"),
            SafetyTier.SAFE,
        )
        _write(root / "agents" / "bmad-demo-pm.toml", builder.render_agent(persona))
        _write(root / "prompts" / "bmad-demo-pm.md", LONG_PROMPT)

        shortcut = builder.build_shortcut_agent("demo", "bmad-demo-plan")
        prompt = builder.build_shortcut_prompt("demo", "bmad-demo-plan")
        _write(root / "agents" / "bmad-demo-plan.toml", builder.render_agent(shortcut))
        _write(root / "prompts" / "bmad-demo-plan.md", prompt.body)
        _write(root / "skills" / "bmad-demo-plan" / "SKILL.md", "---\nname: x\n---\n")
        _write(root / "skills" / "bmad-demo-data" / "glossary.md", "# Glossary")
        return root

    def test_consistent_home_passes(self, home: Path) -> None:
        result = ConsistencyValidator(home).validate()

        assert result.passed
        assert result.warnings == []
        assert result.agent_count == 2
        assert result.prompt_count == 2
        assert result.skill_count == 2

    def test_missing_home_is_empty(self, tmp_path: Path) -> None:
        result = ConsistencyValidator(tmp_path / "absent").validate()
        assert result.passed
        assert result.agent_count == 0

    def test_ghost_prompt(self, home: Path) -> None:
        """An agent naming a missing prompt yields exactly one error."""
        _write(
            home / "agents" / "bmad-demo-ghost.toml",
            'display_name = "Ghost"\ndescription = "g"\nsafety = "safe"\n'
            'system_prompt_id = "bmad-demo-ghost"\nenabled_tools = ["read_file"]\n',
        )
        result = ConsistencyValidator(home).validate()

        assert result.errors == ["bmad-demo-ghost.toml: prompt bmad-demo-ghost.md not found"]

    def test_invalid_toml(self, home: Path) -> None:
        _write(home / "agents" / "bmad-demo-bad.toml", "display_name = [unclosed")
        result = ConsistencyValidator(home).validate()

        assert len(result.errors) == 1
        assert result.errors[0].startswith("bmad-demo-bad.toml: invalid TOML")

    def test_missing_fields_each_reported(self, home: Path) -> None:
        _write(home / "agents" / "bmad-demo-thin.toml", 'system_prompt_id = "bmad-demo-pm"\n')
        result = ConsistencyValidator(home).validate()

        assert "bmad-demo-thin.toml: missing field 'display_name'" in result.errors
        assert "bmad-demo-thin.toml: missing field 'description'" in result.errors
        assert "bmad-demo-thin.toml: missing field 'safety'" in result.errors
        assert "bmad-demo-thin.toml: missing field 'enabled_tools'" in result.errors

    def test_invalid_safety(self, home: Path) -> None:
        _write(
            home / "agents" / "bmad-demo-odd.toml",
            'display_name = "x"\ndescription = "x"\nsafety = "reckless"\n'
            'system_prompt_id = "bmad-demo-pm"\nenabled_tools = []\n',
        )
        result = ConsistencyValidator(home).validate()
        assert result.errors == ["bmad-demo-odd.toml: invalid safety 'reckless'"]

    def test_yolo_is_accepted(self, home: Path) -> None:
        """Hand-written agents may use the manual-only tier."""
        _write(
            home / "agents" / "bmad-demo-yolo.toml",
            'display_name = "x"\ndescription = "x"\nsafety = "yolo"\n'
            'system_prompt_id = "bmad-demo-pm"\nenabled_tools = []\n',
        )
        assert ConsistencyValidator(home).validate().passed

    def test_missing_system_prompt_id(self, home: Path) -> None:
        _write(
            home / "agents" / "bmad-demo-nop.toml",
            'display_name = "x"\ndescription = "x"\nsafety = "safe"\nenabled_tools = []\n',
        )
        result = ConsistencyValidator(home).validate()
        assert result.errors == ["bmad-demo-nop.toml: missing system_prompt_id"]

    def test_small_prompt_warns(self, home: Path) -> None:
        _write(home / "prompts" / "bmad-demo-pm.md", "# tiny")
        result = ConsistencyValidator(home).validate()

        assert result.passed
        assert result.warnings == ["bmad-demo-pm.md: suspiciously small (6 bytes)"]

    def test_orphaned_prompt_warns(self, home: Path) -> None:
        _write(home / "prompts" / "bmad-demo-lonely.md", LONG_PROMPT)
        result = ConsistencyValidator(home).validate()

        assert result.passed
        assert result.warnings == ["orphaned prompt: bmad-demo-lonely.md"]

    def test_skill_without_document_warns(self, home: Path) -> None:
        (home / "skills" / "bmad-demo-empty").mkdir()
        (home / "skills" / "bmad-demo-docs").mkdir()
        result = ConsistencyValidator(home).validate()

        assert result.warnings == ["skill bmad-demo-empty: missing SKILL.md"]

    def test_shortcut_without_skill(self, home: Path) -> None:
        (home / "skills" / "bmad-demo-plan" / "SKILL.md").unlink()
        (home / "skills" / "bmad-demo-plan").rmdir()
        result = ConsistencyValidator(home).validate()

        assert result.errors == ["bmad-demo-plan.toml: skill bmad-demo-plan not found"]

    def test_shortcut_prompt_without_pointer(self, home: Path) -> None:
        _write(home / "prompts" / "bmad-demo-plan.md", LONG_PROMPT)
        result = ConsistencyValidator(home).validate()

        assert result.errors == ["bmad-demo-plan.toml: shortcut prompt has no skill slug"]

    def test_non_bmad_files_ignored(self, home: Path) -> None:
        _write(home / "agents" / "custom.toml", "not = [valid")
        _write(home / "prompts" / "custom.md", "x")
        assert ConsistencyValidator(home).validate().passed

    def test_checks_are_independent(self, home: Path) -> None:
        """One broken artifact does not hide another's findings."""
        _write(home / "agents" / "bmad-demo-bad.toml", "display_name = [unclosed")
        _write(home / "prompts" / "bmad-demo-lonely.md", LONG_PROMPT)
        (home / "prompts" / "bmad-demo-pm.md").unlink()
        result = ConsistencyValidator(home).validate()

        assert len(result.errors) == 2
        assert "bmad-demo-pm.toml: prompt bmad-demo-pm.md not found" in result.errors
        assert result.warnings == ["orphaned prompt: bmad-demo-lonely.md"]

    @pytest.mark.parametrize("value", ['["safe"]', "{ level = 1 }", "3"])
    def test_non_string_safety(self, home: Path, value: str) -> None:
        """A structured safety value is reported, not raised."""
        _write(
            home / "agents" / "bmad-demo-odd.toml",
            f'display_name = "x"\ndescription = "x"\nsafety = {value}\n'
            'system_prompt_id = "bmad-demo-pm"\nenabled_tools = []\n',
        )
        result = ConsistencyValidator(home).validate()

        assert len(result.errors) == 1
        assert result.errors[0].startswith("bmad-demo-odd.toml: invalid safety ")
        assert result.agent_count == 3

    def test_skill_slug_cannot_leave_skills_dir(self, home: Path) -> None:
        """A pointer with path separators never resolves outside skills/."""
        (home / "bmad-demo-outside").mkdir()
        _write(
            home / "prompts" / "bmad-demo-plan.md",
            LONG_PROMPT + "\nSkill slug: `../bmad-demo-outside`\n",
        )
        result = ConsistencyValidator(home).validate()

        assert result.errors == [
            "bmad-demo-plan.toml: invalid skill slug '../bmad-demo-outside'",
        ]


class TestIsPlainIdentifier:
    """Test identifier containment."""

    @pytest.mark.parametrize("value", ["bmad-demo-plan", "bmad-demo-plan.v2"])
    def test_plain(self, value: str) -> None:
        assert is_plain_identifier(value)

    @pytest.mark.parametrize("value", ["", ".", "..", "a/b", "/abs", "..\\x"])
    def test_rejected(self, value: str) -> None:
        assert not is_plain_identifier(value)
