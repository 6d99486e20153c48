"""Safety classification of agents and workflows."""

from __future__ import annotations

from .models import SafetyPolicy, SafetyTier

SAFE_TOOLS = ["read_file", "grep", "list_dir", "ask_user_question"]
NEUTRAL_TOOLS = [
    "read_file",
    "grep",
    "list_dir",
    "write_file",
    "search_replace",
    "ask_user_question",
]
DESTRUCTIVE_TOOLS = [
    "read_file",
    "grep",
    "list_dir",
    "write_file",
    "search_replace",
    "bash",
    "ask_user_question",
    "task",
]

DEFAULT_PERSONA_OVERRIDES: dict[str, dict[str, SafetyTier]] = {
    "bmm": {
        "analyst": SafetyTier.SAFE,
        "architect": SafetyTier.SAFE,
        "pm": SafetyTier.SAFE,
        "sm": SafetyTier.SAFE,
        "tea": SafetyTier.SAFE,
        "tech-writer": SafetyTier.SAFE,
        "ux-designer": SafetyTier.SAFE,
        "dev": SafetyTier.DESTRUCTIVE,
        "quick-flow-solo-dev": SafetyTier.DESTRUCTIVE,
    },
    "bmgd": {
        "game-dev": SafetyTier.DESTRUCTIVE,
        "game-solo-dev": SafetyTier.DESTRUCTIVE,
        "game-architect": SafetyTier.SAFE,
        "game-designer": SafetyTier.SAFE,
        "game-scrum-master": SafetyTier.SAFE,
        "game-qa": SafetyTier.SAFE,
    },
    "cis": {
        "brainstorming-coach": SafetyTier.SAFE,
        "creative-problem-solver": SafetyTier.SAFE,
        "design-thinking-coach": SafetyTier.SAFE,
        "innovation-strategist": SafetyTier.SAFE,
        "presentation-master": SafetyTier.SAFE,
        "storyteller": SafetyTier.SAFE,
    },
    "bmb": {
        "bmad-builder": SafetyTier.DESTRUCTIVE,
        "agent-builder": SafetyTier.DESTRUCTIVE,
        "module-builder": SafetyTier.DESTRUCTIVE,
        "workflow-builder": SafetyTier.DESTRUCTIVE,
    },
}


def default_safety_policy() -> SafetyPolicy:
    """Build the stock policy shipped with the converter."""
    return SafetyPolicy(
        persona_overrides={
            module: dict(table) for module, table in DEFAULT_PERSONA_OVERRIDES.items()
        },
        tier_tools={
            SafetyTier.SAFE: list(SAFE_TOOLS),
            SafetyTier.NEUTRAL: list(NEUTRAL_TOOLS),
            SafetyTier.DESTRUCTIVE: list(DESTRUCTIVE_TOOLS),
            SafetyTier.YOLO: list(DESTRUCTIVE_TOOLS),
        },
    )


class SafetyClassifier:
    """Assigns safety tiers and tool grants from a read-only policy."""

    def __init__(self, policy: SafetyPolicy | None = None) -> None:
        """Initialize classifier.

        Args:
            policy: Classification tables, defaults to the stock policy
        """
        self.policy = policy or default_safety_policy()

    def override(self, module: str, name: str) -> SafetyTier | None:
        """Look up an explicit tier for a persona or workflow name."""
        return self.policy.persona_overrides.get(module, {}).get(name)

    def classify_persona(self, module: str, name: str) -> SafetyTier:
        """Tier for a persona agent; unknown personas are neutral."""
        tier = self.override(module, name)
        if tier is None:
            return SafetyTier.NEUTRAL
        return tier

    def classify_workflow(self, module: str, name: str) -> SafetyTier:
        """Tier for a workflow shortcut agent.

        An explicit override wins; otherwise any destructive marker found in
        the lower-cased name makes the workflow destructive.
        """
        tier = self.override(module, name)
        if tier is not None:
            return tier

        lower = name.lower()
        if any(marker in lower for marker in self.policy.destructive_markers):
            return SafetyTier.DESTRUCTIVE
        return SafetyTier.NEUTRAL

    def tools_for(self, tier: SafetyTier) -> list[str]:
        """Ordered tool names granted to a tier."""
        return list(self.policy.tier_tools[tier])
