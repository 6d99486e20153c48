"""Core data models for the BMAD to Vibe converter."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SafetyTier(str, Enum):
    """Vibe agent safety levels."""

    SAFE = "safe"
    NEUTRAL = "neutral"
    DESTRUCTIVE = "destructive"
    YOLO = "yolo"  # Accepted in hand-written agents, never assigned


CLASSIFIABLE_TIERS = (SafetyTier.SAFE, SafetyTier.NEUTRAL, SafetyTier.DESTRUCTIVE)


class SourceKind(str, Enum):
    """Kinds of convertible BMAD source documents."""

    PERSONA = "persona"
    WORKFLOW = "workflow"
    TASK = "task"


class SourceItem(BaseModel):
    """One convertible BMAD document, read once from a source tree."""

    model_config = ConfigDict(frozen=True)

    module: str = Field(..., description="BMAD module the item belongs to")
    kind: SourceKind = Field(..., description="Source document kind")
    relative_path: str = Field(
        ...,
        description="POSIX path relative to the kind's source subtree",
    )
    source_path: Path = Field(..., description="Absolute path of the document")
    body: str = Field(..., description="Raw document text, treated as opaque")

    @property
    def file_name(self) -> str:
        """Leaf file name of the item."""
        return self.relative_path.rsplit("/", 1)[-1]

    @property
    def stem(self) -> str:
        """File name without its final extension."""
        name = self.file_name
        return name.rsplit(".", 1)[0] if "." in name else name


class AgentMeta(BaseModel):
    """Persona attributes extracted from an agent's leading XML tag."""

    slug: str
    name: str = ""
    title: str = ""
    icon: str = ""
    description: str = ""


class NamedContent(BaseModel):
    """An auxiliary file inlined into a skill document."""

    model_config = ConfigDict(frozen=True)

    name: str
    content: str


class AuxiliaryContent(BaseModel):
    """Files found next to a workflow that get inlined into its skill."""

    steps: list[NamedContent] = Field(default_factory=list)
    templates: list[NamedContent] = Field(default_factory=list)
    data: list[NamedContent] = Field(default_factory=list)


class AgentRecord(BaseModel):
    """A Vibe agent configuration record."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Agent slug, also the file stem")
    display_name: str
    description: str
    safety: SafetyTier
    system_prompt_id: str = Field(..., description="Identifier of the paired prompt")
    enabled_tools: list[str] = Field(default_factory=list)
    shortcut: bool = Field(
        default=False,
        description="Whether the agent only delegates to a workflow skill",
    )
    comments: list[str] = Field(
        default_factory=list,
        description="Header comment lines, without the leading '#'",
    )

    @property
    def auto_approve(self) -> bool:
        """Only the lowest-risk tier runs without confirmation."""
        return self.safety == SafetyTier.SAFE


class PromptDocument(BaseModel):
    """A Vibe system prompt."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    body: str


class SkillDocument(BaseModel):
    """A Vibe SKILL.md document."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    description: str
    license: str = "MIT"
    user_invocable: bool = True
    allowed_tools: list[str] = Field(default_factory=list)
    body: str


class SafetyPolicy(BaseModel):
    """Read-only tables driving safety classification and tool grants."""

    model_config = ConfigDict(frozen=True)

    persona_overrides: dict[str, dict[str, SafetyTier]] = Field(
        default_factory=dict,
        description="Module name -> persona or workflow name -> tier",
    )
    tier_tools: dict[SafetyTier, list[str]] = Field(
        ...,
        description="Ordered tool names granted to each tier",
    )
    destructive_markers: list[str] = Field(
        default_factory=lambda: ["dev", "implement"],
        description="Workflow name fragments that imply mutating intent",
    )

    @field_validator("persona_overrides")
    @classmethod
    def reject_manual_tiers(
        cls,
        v: dict[str, dict[str, SafetyTier]],
    ) -> dict[str, dict[str, SafetyTier]]:
        """Overrides may only name tiers the converter is allowed to assign."""
        for module, table in v.items():
            for name, tier in table.items():
                if tier not in CLASSIFIABLE_TIERS:
                    msg = f"Override {module}/{name} uses manual-only tier '{tier.value}'"
                    raise ValueError(msg)
        return v

    @field_validator("destructive_markers")
    @classmethod
    def normalize_markers(cls, v: list[str]) -> list[str]:
        """Lower-case markers so matching stays case-insensitive."""
        markers = [m.strip().lower() for m in v if m.strip()]
        if not markers:
            msg = "At least one destructive marker is required"
            raise ValueError(msg)
        return markers

    @model_validator(mode="after")
    def check_tier_tools(self) -> SafetyPolicy:
        """Every tier the classifier can assign must grant at least one tool."""
        for tier in CLASSIFIABLE_TIERS:
            if not self.tier_tools.get(tier):
                msg = f"Tier '{tier.value}' must map to a non-empty tool list"
                raise ValueError(msg)
        return self


class ConversionConfig(BaseModel):
    """Settings for one conversion run."""

    vibe_home: Path = Field(..., description="Target Vibe home directory")
    modules: list[str] = Field(..., description="BMAD modules to convert, in order")
    dry_run: bool = Field(default=False, description="Render without writing")
    verbose: bool = Field(default=False, description="Per-item progress output")
    cleanup: bool = Field(default=True, description="Remove cloned sources afterwards")

    @field_validator("modules")
    @classmethod
    def validate_modules(cls, v: list[str]) -> list[str]:
        """Strip module names and reject empty or malformed selections."""
        modules = [m.strip() for m in v if m.strip()]
        if not modules:
            msg = "At least one module must be selected"
            raise ValueError(msg)
        for module in modules:
            if not re.match(r"^[a-z0-9][a-z0-9_-]*$", module):
                msg = f"Module name must be lowercase alphanumeric: {module!r}"
                raise ValueError(msg)
        return modules
