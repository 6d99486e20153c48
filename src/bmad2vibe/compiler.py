"""Artifact builder for Vibe agents, prompts and skills.

Every method is pure: it returns models or text and never touches storage.
Identical inputs always render byte-identical output.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from .identifiers import (
    persona_slug,
    shortcut_name,
    shortcut_slug,
    to_title,
)
from .models import (
    AgentMeta,
    AgentRecord,
    AuxiliaryContent,
    NamedContent,
    PromptDocument,
    SafetyTier,
    SkillDocument,
    SourceKind,
)
from .safety import SafetyClassifier

GENERATOR = "bmad2vibe"
SHORTCUT_MARKER = "workflow shortcut"
SKILL_FILE_NAME = "SKILL.md"
SKILL_POINTER_RE = re.compile(r"Skill slug: `([^`]+)`")

WORKFLOW_SKILL_TOOLS = [
    "read_file",
    "write_file",
    "search_replace",
    "grep",
    "bash",
    "ask_user_question",
    "list_dir",
]
TASK_SKILL_TOOLS = [
    "read_file",
    "write_file",
    "grep",
    "bash",
    "ask_user_question",
    "list_dir",
]

FENCE_LANGUAGES = {
    SourceKind.PERSONA: "xml",
    SourceKind.WORKFLOW: "markdown",
    SourceKind.TASK: "markdown",
}

ADAPTATION_TABLE = [
    ("`{project-root}`", "Current working directory"),
    ("`{output_folder}`", "`_bmad-output/`"),
    ("`{planning_artifacts}`", "`_bmad-output/planning-artifacts/`"),
    ("`{implementation_artifacts}`", "`_bmad-output/implementation-artifacts/`"),
    ("Slash commands (`/bmad-...`)", "Execute the workflow instructions inline"),
    ("`ask_user_question`", "Vibe interactive question tool"),
    ("`workflow.xml` engine", "Follow workflow steps sequentially"),
    ("`task` tool (subagent)", "Vibe `task` tool for delegation"),
]


@dataclass(frozen=True)
class IndexRow:
    """One agent listed in the AGENTS.md discovery index."""

    identifier: str
    display_name: str
    description: str
    shortcut: bool


def toml_string(value: str) -> str:
    """Quote a value as a TOML basic string."""
    return json.dumps(value, ensure_ascii=False)


def is_shortcut_record(toml_text: str) -> bool:
    """Check whether an agent TOML carries the shortcut header comment."""
    return any(
        line.startswith("#") and SHORTCUT_MARKER in line
        for line in toml_text.splitlines()
    )


def extract_skill_pointer(prompt_text: str) -> str | None:
    """Return the skill identifier a shortcut prompt delegates to."""
    match = SKILL_POINTER_RE.search(prompt_text)
    if match is None:
        return None
    return match.group(1)


def _one_line(text: str) -> str:
    return " ".join(text.split())


def _fence_language(file_name: str) -> str:
    lang = PurePosixPath(file_name).suffix.lstrip(".")
    return "markdown" if lang == "md" else lang


class ArtifactBuilder:
    """Builds and renders Vibe artifacts from BMAD sources."""

    def __init__(self, classifier: SafetyClassifier) -> None:
        """Initialize builder.

        Args:
            classifier: Classifier whose policy supplies tier tool grants
        """
        self.classifier = classifier

    # --- Agent records ---

    def build_persona_agent(
        self,
        module: str,
        meta: AgentMeta,
        tier: SafetyTier,
    ) -> AgentRecord:
        """Build the agent record for a persona.

        Args:
            module: BMAD module name
            meta: Attributes extracted from the persona's leading tag
            tier: Safety tier assigned to the persona

        Returns:
            Agent record paired with a prompt of the same identifier
        """
        identifier = persona_slug(module, meta.slug)
        title = meta.title or to_title(meta.slug)

        display_name = f"BMAD {module.upper()} {title}"
        if meta.name and meta.name != title:
            display_name += f" ({meta.name})"

        description = meta.description or (
            f"{title} agent from the BMAD {module} module"
        )

        persona = " ".join(part for part in (meta.icon, meta.name) if part)
        return AgentRecord(
            identifier=identifier,
            display_name=display_name,
            description=description,
            safety=tier,
            system_prompt_id=identifier,
            enabled_tools=self.classifier.tools_for(tier),
            comments=[
                f"Auto-generated by {GENERATOR}",
                f"BMAD Agent: {identifier}",
                f"Source module: {module} | Persona: {persona}",
            ],
        )

    def build_shortcut_agent(self, module: str, skill_slug: str) -> AgentRecord:
        """Build a lightweight agent that runs one workflow skill directly."""
        identifier = shortcut_slug(module, skill_slug)
        name = shortcut_name(module, skill_slug)
        title = to_title(name)
        tier = self.classifier.classify_workflow(module, name)

        return AgentRecord(
            identifier=identifier,
            display_name=f"BMAD {title}",
            description=f"BMAD {module.upper()} workflow: {title}",
            safety=tier,
            system_prompt_id=identifier,
            enabled_tools=self.classifier.tools_for(tier),
            shortcut=True,
            comments=[
                f"Auto-generated {SHORTCUT_MARKER} agent by {GENERATOR}",
                f"Runs workflow {skill_slug} directly.",
            ],
        )

    def render_agent(self, record: AgentRecord) -> str:
        """Render an agent record as Vibe agent TOML."""
        lines = [f"# {_one_line(comment)}".rstrip() for comment in record.comments]
        lines.extend([
            "",
            f"display_name = {toml_string(record.display_name)}",
            f"description = {toml_string(record.description)}",
            f"safety = {toml_string(record.safety.value)}",
            f"auto_approve = {'true' if record.auto_approve else 'false'}",
            f"system_prompt_id = {toml_string(record.system_prompt_id)}",
            "",
            "enabled_tools = [{}]".format(
                ", ".join(toml_string(tool) for tool in record.enabled_tools),
            ),
        ])
        return "\n".join(lines) + "\n"

    # --- Prompts ---

    def build_persona_prompt(
        self,
        module: str,
        meta: AgentMeta,
        body: str,
        kind: SourceKind = SourceKind.PERSONA,
    ) -> PromptDocument:
        """Wrap a persona definition in the Vibe runtime adaptation layer.

        Args:
            module: BMAD module name
            meta: Persona metadata
            body: Verbatim source document, embedded inside a code fence
            kind: Source kind, selects the fence language

        Returns:
            Prompt document with the persona's identifier
        """
        title = meta.title or to_title(meta.slug)
        heading = " ".join(part for part in ("#", meta.icon, title) if part)
        if meta.name:
            heading += f" ({meta.name})"

        sections = [
            heading,
            "",
            f"> Module: {module.upper()} | Agent: {meta.slug} | Generated by {GENERATOR}",
            "",
            "## Vibe Runtime Adaptation",
            "",
            "You are running inside **Mistral Vibe** CLI, NOT Claude Code/Cursor/Windsurf.",
            "Apply these substitutions when following BMAD instructions:",
            "",
            "| BMAD reference | Vibe equivalent |",
            "|---|---|",
        ]
        sections.extend(f"| {ref} | {equiv} |" for ref, equiv in ADAPTATION_TABLE)
        sections.extend([
            "",
            "When a menu item references a workflow, read its SKILL.md from",
            f"`~/.vibe/skills/bmad-{module}-<workflow-name>/SKILL.md` and execute it.",
            "",
            "## Full Agent Definition",
            "",
            "Follow the agent specification below exactly, adapting tool calls to Vibe.",
            "",
            f"```{FENCE_LANGUAGES[kind]}",
            body.strip(),
            "```",
        ])
        return PromptDocument(
            identifier=persona_slug(module, meta.slug),
            body="\n".join(sections) + "\n",
        )

    def build_shortcut_prompt(self, module: str, skill_slug: str) -> PromptDocument:
        """Prompt telling a shortcut agent which skill to execute."""
        title = to_title(shortcut_name(module, skill_slug))
        sections = [
            f"# BMAD Workflow: {title}",
            "",
            f"> Workflow shortcut agent, auto-generated by {GENERATOR}.",
            "",
            "## Instructions",
            "",
            f"1. Read `~/.vibe/skills/{skill_slug}/{SKILL_FILE_NAME}`",
            "2. Follow all instructions sequentially",
            "3. Substitute `{project-root}` → cwd",
            "4. Substitute `{output_folder}` → `_bmad-output/`",
            "5. Substitute `{planning_artifacts}` → `_bmad-output/planning-artifacts/`",
            "6. Use `ask_user_question` for interactive prompts",
            "",
            f"Skill slug: `{skill_slug}`",
        ]
        return PromptDocument(
            identifier=shortcut_slug(module, skill_slug),
            body="\n".join(sections) + "\n",
        )

    def render_prompt(self, prompt: PromptDocument) -> str:
        """Prompt documents are stored as their body."""
        return prompt.body

    # --- Skills ---

    def build_workflow_skill(
        self,
        module: str,
        skill_slug: str,
        body: str,
        aux: AuxiliaryContent | None = None,
    ) -> SkillDocument:
        """Build a skill from a workflow and its steps, templates and data.

        Args:
            module: BMAD module name
            skill_slug: Identifier derived from the workflow path
            body: Verbatim workflow document
            aux: Auxiliary files to inline; empty groups are omitted

        Returns:
            Skill document
        """
        aux = aux or AuxiliaryContent()
        mod = module.upper()

        sections = [
            f"> Auto-generated by {GENERATOR} from BMAD {mod} module.",
            "> `{project-root}` → cwd | `{output_folder}` → `_bmad-output/`",
            "> `{planning_artifacts}` → `_bmad-output/planning-artifacts/`",
            '> When instructions say "load workflow engine", follow steps sequentially.',
            "",
            body,
        ]

        if aux.steps:
            sections.extend(["", "---", "", "# Workflow Steps", ""])
            sections.extend(["Execute these steps in order.", ""])
            for step in aux.steps:
                sections.extend([f"## {step.name}", "", step.content, ""])

        if aux.templates:
            sections.extend(["", "---", "", "# Templates", ""])
            for template in aux.templates:
                sections.extend(self._fenced_section("Template", template))

        if aux.data:
            sections.extend(["", "---", "", "# Data Files", ""])
            for item in aux.data:
                sections.extend(self._fenced_section("Data", item))

        return SkillDocument(
            identifier=skill_slug,
            description=f"BMAD {mod} workflow, auto-generated by {GENERATOR}",
            allowed_tools=list(WORKFLOW_SKILL_TOOLS),
            body="\n".join(sections) + "\n",
        )

    def build_task_skill(self, module: str, skill_slug: str, body: str) -> SkillDocument:
        """Build a user-invocable skill from a standalone task document."""
        mod = module.upper()
        return SkillDocument(
            identifier=skill_slug,
            description=f"BMAD {mod} task, auto-generated by {GENERATOR}",
            allowed_tools=list(TASK_SKILL_TOOLS),
            body="\n".join([
                f"> BMAD {mod} task. `{{project-root}}` → cwd.",
                "",
                body,
            ]) + "\n",
        )

    def render_skill(self, skill: SkillDocument) -> str:
        """Render a SKILL.md with its front matter."""
        lines = [
            "---",
            f"name: {skill.identifier}",
            f"description: {toml_string(skill.description)}",
            f"license: {skill.license}",
            f"user-invocable: {'true' if skill.user_invocable else 'false'}",
            "allowed-tools:",
        ]
        lines.extend(f"  - {tool}" for tool in skill.allowed_tools)
        lines.extend(["---", "", skill.body])
        return "\n".join(lines)

    def _fenced_section(self, label: str, item: NamedContent) -> list[str]:
        return [
            f"## {label}: {item.name}",
            "",
            f"```{_fence_language(item.name)}",
            item.content,
            "```",
            "",
        ]

    # --- Discovery index ---

    def render_agents_index(self, rows: list[IndexRow]) -> str:
        """Render AGENTS.md listing persona agents, then shortcut agents."""
        header = ["| Agent | Command | Description |", "|---|---|---|"]
        ordered = sorted(rows, key=lambda r: r.identifier)
        personas = [r for r in ordered if not r.shortcut]
        shortcuts = [r for r in ordered if r.shortcut]

        sections = [
            "# AGENTS.md: BMAD Method for Mistral Vibe",
            "",
            f"Auto-generated by {GENERATOR}. "
            "Copy to your project root for Vibe AGENTS.md support.",
            "",
            "## Persona Agents",
            "",
            "Launch: `vibe --agent <name>` or `Shift+Tab` in interactive mode.",
            "",
            *header,
        ]
        sections.extend(self._index_row(r) for r in personas)

        if shortcuts:
            sections.extend(["", "## Workflow Shortcut Agents", "", *header])
            sections.extend(self._index_row(r) for r in shortcuts)

        return "\n".join(sections) + "\n"

    def _index_row(self, row: IndexRow) -> str:
        return (
            f"| {_one_line(row.display_name)} | `vibe --agent {row.identifier}` "
            f"| {_one_line(row.description)} |"
        )
