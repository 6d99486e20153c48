"""Conversion report accumulated across all pipeline phases."""

from __future__ import annotations

from dataclasses import dataclass, field


def unique(items: list[str]) -> list[str]:
    """Drop duplicates, keeping first-seen order."""
    return list(dict.fromkeys(items))


@dataclass
class ValidationResult:
    """Outcome of a consistency check over a Vibe home."""

    agent_count: int = 0
    prompt_count: int = 0
    skill_count: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        """Warnings are advisory; only errors fail validation."""
        return not self.errors


@dataclass
class ReportSummary:
    """Deduplicated, sorted view of a finished conversion."""

    persona_agents: list[str]
    workflow_agents: list[str]
    prompts: list[str]
    skills: list[str]
    warnings: list[str]
    errors: list[str]
    validation: ValidationResult | None = None

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero iff any error was collected."""
        return 1 if self.errors else 0


@dataclass
class ConversionReport:
    """Mutable accumulator of produced identifiers, warnings and errors."""

    agents: list[str] = field(default_factory=list)
    shortcut_agents: list[str] = field(default_factory=list)
    prompts: list[str] = field(default_factory=list)
    skills: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    validation: ValidationResult | None = None

    def warn(self, message: str) -> None:
        """Record an advisory problem."""
        self.warnings.append(message)

    def error(self, message: str) -> None:
        """Record a problem that fails the run."""
        self.errors.append(message)

    def add_validation(self, result: ValidationResult) -> None:
        """Fold a validation result into the report."""
        self.validation = result
        self.warnings.extend(result.warnings)
        self.errors.extend(result.errors)

    @property
    def exit_code(self) -> int:
        """Process exit status: non-zero iff any error was collected."""
        return 1 if self.errors else 0

    def summarize(self) -> ReportSummary:
        """Deduplicate and sort the produced identifiers."""
        workflow_agents = set(self.shortcut_agents)
        agents = sorted(unique(self.agents + self.shortcut_agents))
        return ReportSummary(
            persona_agents=[a for a in agents if a not in workflow_agents],
            workflow_agents=[a for a in agents if a in workflow_agents],
            prompts=sorted(unique(self.prompts)),
            skills=sorted(unique(self.skills)),
            warnings=list(self.warnings),
            errors=list(self.errors),
            validation=self.validation,
        )
