"""Artifact store for a Vibe home directory."""

from __future__ import annotations

import shutil
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .exceptions import ArtifactStoreError

AGENTS_DIR = "agents"
PROMPTS_DIR = "prompts"
SKILLS_DIR = "skills"
INDEX_FILE = "AGENTS.md"
AGENT_SUFFIX = ".toml"
PROMPT_SUFFIX = ".md"
SKILL_FILE = "SKILL.md"


def agent_path(identifier: str) -> str:
    """Store-relative path of an agent record."""
    return f"{AGENTS_DIR}/{identifier}{AGENT_SUFFIX}"


def prompt_path(identifier: str) -> str:
    """Store-relative path of a prompt document."""
    return f"{PROMPTS_DIR}/{identifier}{PROMPT_SUFFIX}"


def skill_dir(identifier: str) -> str:
    """Store-relative path of a skill container."""
    return f"{SKILLS_DIR}/{identifier}"


def skill_path(identifier: str) -> str:
    """Store-relative path of a skill document."""
    return f"{skill_dir(identifier)}/{SKILL_FILE}"


class ArtifactStore:
    """Persists rendered artifacts under a root, or previews them.

    Every write is recorded in ``rendered`` in both modes, so a preview run
    and a persisting run expose the same (path, text) pairs.
    """

    def __init__(
        self,
        root: Path,
        dry_run: bool = False,
        console: Console | None = None,
    ) -> None:
        """Initialize store.

        Args:
            root: Vibe home directory
            dry_run: Record and report writes without touching the disk
            console: Console for preview output, quiet by default
        """
        self.root = Path(root)
        self.dry_run = dry_run
        self.console = console or Console(quiet=True)
        self.rendered: dict[str, str] = {}
        self.copied: dict[str, Path] = {}

    def ensure_dirs(self) -> None:
        """Create the agents, prompts and skills directories."""
        if self.dry_run:
            return
        for subdir in (AGENTS_DIR, PROMPTS_DIR, SKILLS_DIR):
            try:
                (self.root / subdir).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                msg = f"Failed to create {self.root / subdir}: {e}"
                raise ArtifactStoreError(msg, details={"path": subdir}) from e

    def write(self, rel_path: str, content: str) -> None:
        """Persist text at a store-relative path, overwriting any old content.

        Raises:
            ArtifactStoreError: If the file cannot be written
        """
        self.rendered[rel_path] = content
        target = self.root / rel_path

        if self.dry_run:
            self.console.print(f"   [dim][DRY] {escape(str(target))}[/dim]")
            return

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            msg = f"write {target}: {e}"
            raise ArtifactStoreError(msg, details={"path": rel_path}) from e

    def copy_tree(self, source: Path, rel_dest: str) -> None:
        """Copy a supporting-data directory into the store.

        Raises:
            ArtifactStoreError: If the copy fails
        """
        self.copied[rel_dest] = source
        target = self.root / rel_dest

        if self.dry_run:
            self.console.print(
                f"   [dim][DRY] Would copy {escape(str(source))} → "
                f"{escape(str(target))}[/dim]",
            )
            return

        try:
            shutil.copytree(source, target, dirs_exist_ok=True)
        except OSError as e:
            msg = f"copy {source} → {target}: {e}"
            raise ArtifactStoreError(msg, details={"path": rel_dest}) from e

    def exists(self, rel_path: str) -> bool:
        """Check this run's writes first, then the disk."""
        return rel_path in self.rendered or (self.root / rel_path).exists()

    def read(self, rel_path: str) -> str | None:
        """Return an artifact's text, or None when it does not exist.

        Raises:
            ArtifactStoreError: If an existing file cannot be read
        """
        if rel_path in self.rendered:
            return self.rendered[rel_path]

        target = self.root / rel_path
        if not target.is_file():
            return None
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            msg = f"read {target}: {e}"
            raise ArtifactStoreError(msg, details={"path": rel_path}) from e

    def agent_identifiers(self) -> list[str]:
        """Identifiers of every agent record on disk or written this run."""
        identifiers = {
            Path(rel).stem
            for rel in self.rendered
            if rel.startswith(f"{AGENTS_DIR}/") and rel.endswith(AGENT_SUFFIX)
        }
        agents_dir = self.root / AGENTS_DIR
        if agents_dir.is_dir():
            identifiers.update(p.stem for p in agents_dir.glob(f"*{AGENT_SUFFIX}"))
        return sorted(identifiers)
