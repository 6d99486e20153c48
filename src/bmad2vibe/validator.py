"""Consistency validation of a generated Vibe home."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .compiler import extract_skill_pointer, is_shortcut_record
from .models import SafetyTier
from .report import ValidationResult
from .store import (
    AGENT_SUFFIX,
    AGENTS_DIR,
    PROMPT_SUFFIX,
    PROMPTS_DIR,
    SKILL_FILE,
    SKILLS_DIR,
)

REQUIRED_AGENT_FIELDS = ("display_name", "description", "safety", "enabled_tools")
VALID_SAFETY = frozenset(tier.value for tier in SafetyTier)
MIN_PROMPT_BYTES = 50
BULK_DATA_SUFFIXES = ("-data", "-docs")
ARTIFACT_GLOB_PREFIX = "bmad-"


def is_plain_identifier(value: str) -> bool:
    """Check that an identifier names one entry and cannot leave its directory."""
    return bool(value) and value not in (".", "..") and not any(
        sep in value for sep in ("/", "\\")
    )


@dataclass
class _AgentFile:
    path: Path
    text: str
    data: dict[str, Any] | None


class ConsistencyValidator:
    """Re-reads a Vibe home and checks cross-artifact references.

    Checks are independent and additive: one failing check never hides the
    findings of another. Nothing is corrected, only reported.
    """

    def __init__(self, root: Path) -> None:
        """Initialize validator.

        Args:
            root: Vibe home directory to inspect
        """
        self.root = Path(root)
        self.agents_dir = self.root / AGENTS_DIR
        self.prompts_dir = self.root / PROMPTS_DIR
        self.skills_dir = self.root / SKILLS_DIR

    def validate(self) -> ValidationResult:
        """Run every check over the current artifact set.

        Returns:
            Counts of agents, prompts and skills plus all warnings and errors
        """
        result = ValidationResult()
        agents = self._load_agents(result)
        prompts = self._glob(self.prompts_dir, f"{ARTIFACT_GLOB_PREFIX}*{PROMPT_SUFFIX}")
        skills = self._skill_dirs()

        self._check_agents(agents, result)
        self._check_prompt_sizes(prompts, result)
        self._check_orphan_prompts(prompts, result)
        self._check_skill_documents(skills, result)
        self._check_shortcuts(agents, result)

        result.agent_count = len(agents)
        result.prompt_count = len(prompts)
        result.skill_count = len(skills)
        return result

    def _glob(self, directory: Path, pattern: str) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.glob(pattern) if p.is_file())

    def _skill_dirs(self) -> list[Path]:
        if not self.skills_dir.is_dir():
            return []
        return sorted(
            p
            for p in self.skills_dir.iterdir()
            if p.is_dir() and p.name.startswith(ARTIFACT_GLOB_PREFIX)
        )

    def _load_agents(self, result: ValidationResult) -> list[_AgentFile]:
        agents = []
        pattern = f"{ARTIFACT_GLOB_PREFIX}*{AGENT_SUFFIX}"
        for path in self._glob(self.agents_dir, pattern):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                result.errors.append(f"{path.name}: unreadable: {e}")
                agents.append(_AgentFile(path=path, text="", data=None))
                continue
            try:
                data = tomllib.loads(text)
            except tomllib.TOMLDecodeError as e:
                result.errors.append(f"{path.name}: invalid TOML: {e}")
                data = None
            agents.append(_AgentFile(path=path, text=text, data=data))
        return agents

    def _prompt_file(self, identifier: str) -> Path:
        return self.prompts_dir / f"{identifier}{PROMPT_SUFFIX}"

    def _check_agents(self, agents: list[_AgentFile], result: ValidationResult) -> None:
        for agent in agents:
            if agent.data is None:
                continue
            name = agent.path.name

            for field in REQUIRED_AGENT_FIELDS:
                if field not in agent.data:
                    result.errors.append(f"{name}: missing field {field!r}")

            safety = agent.data.get("safety")
            if "safety" in agent.data and not (
                isinstance(safety, str) and safety in VALID_SAFETY
            ):
                result.errors.append(f"{name}: invalid safety {safety!r}")

            prompt_id = agent.data.get("system_prompt_id")
            if not prompt_id:
                result.errors.append(f"{name}: missing system_prompt_id")
            elif not isinstance(prompt_id, str):
                result.errors.append(f"{name}: invalid system_prompt_id {prompt_id!r}")
            elif not self._prompt_file(prompt_id).is_file():
                result.errors.append(f"{name}: prompt {prompt_id}{PROMPT_SUFFIX} not found")

    def _check_prompt_sizes(self, prompts: list[Path], result: ValidationResult) -> None:
        for prompt in prompts:
            size = prompt.stat().st_size
            if size < MIN_PROMPT_BYTES:
                result.warnings.append(f"{prompt.name}: suspiciously small ({size} bytes)")

    def _check_orphan_prompts(self, prompts: list[Path], result: ValidationResult) -> None:
        for prompt in prompts:
            agent = self.agents_dir / f"{prompt.stem}{AGENT_SUFFIX}"
            if not agent.is_file():
                result.warnings.append(f"orphaned prompt: {prompt.name}")

    def _check_skill_documents(self, skills: list[Path], result: ValidationResult) -> None:
        for skill in skills:
            if skill.name.endswith(BULK_DATA_SUFFIXES):
                continue
            if not (skill / SKILL_FILE).is_file():
                result.warnings.append(f"skill {skill.name}: missing {SKILL_FILE}")

    def _check_shortcuts(self, agents: list[_AgentFile], result: ValidationResult) -> None:
        for agent in agents:
            if agent.data is None or not is_shortcut_record(agent.text):
                continue
            prompt_id = agent.data.get("system_prompt_id")
            if not isinstance(prompt_id, str) or not prompt_id:
                continue
            prompt = self._prompt_file(prompt_id)
            if not prompt.is_file():
                # Already reported by the agent check
                continue

            try:
                skill_id = extract_skill_pointer(prompt.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError) as e:
                result.errors.append(f"{prompt.name}: unreadable: {e}")
                continue

            if skill_id is None:
                result.errors.append(f"{agent.path.name}: shortcut prompt has no skill slug")
            elif not is_plain_identifier(skill_id):
                result.errors.append(f"{agent.path.name}: invalid skill slug {skill_id!r}")
            elif not (self.skills_dir / skill_id).is_dir():
                result.errors.append(f"{agent.path.name}: skill {skill_id} not found")
