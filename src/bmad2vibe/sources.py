"""BMAD source acquisition and traversal."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console

from .exceptions import SourceError
from .models import AuxiliaryContent, NamedContent, SourceItem, SourceKind

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .report import ConversionReport

BMAD_BUNDLES_REPO = "https://github.com/bmad-code-org/bmad-bundles.git"
BMAD_METHOD_REPO = "https://github.com/bmad-code-org/BMAD-METHOD.git"

PERSONA_SUFFIX = ".xml"
WORKFLOW_GLOB = "workflow*.md"
TASK_SUFFIX = ".md"
TEMPLATE_MARKERS = ("template", "tmpl")
DATA_SUBDIRS = ("data", "docs")


def clone_repo(url: str, dest: Path, verbose: bool = False) -> None:
    """Shallow-clone a git repository.

    Raises:
        SourceError: If git is unavailable or the clone fails
    """
    try:
        subprocess.run(
            ["git", "clone", "--depth", "1", url, str(dest)],
            check=True,
            capture_output=not verbose,
        )
    except FileNotFoundError as e:
        msg = "git executable not found"
        raise SourceError(msg, details={"url": url}) from e
    except subprocess.CalledProcessError as e:
        msg = f"Failed to clone {url} (exit code {e.returncode})"
        raise SourceError(msg, details={"url": url}) from e


def resolve_sources(
    tmp_dir: Path,
    bundles_dir: Path | None = None,
    method_dir: Path | None = None,
    verbose: bool = False,
    console: Console | None = None,
) -> tuple[Path, Path]:
    """Return local bundles and method roots, cloning whichever is missing.

    Args:
        tmp_dir: Scratch directory for clones
        bundles_dir: Local bmad-bundles checkout, cloned when None
        method_dir: Local BMAD-METHOD checkout, cloned when None
        verbose: Show git output
        console: Console for progress output

    Returns:
        Tuple of (bundles root, method root)

    Raises:
        SourceError: If a local directory is missing or a clone fails
    """
    console = console or Console(quiet=True)
    roots = []
    for local, url, name in (
        (bundles_dir, BMAD_BUNDLES_REPO, "bmad-bundles"),
        (method_dir, BMAD_METHOD_REPO, "BMAD-METHOD"),
    ):
        if local is None:
            dest = Path(tmp_dir) / name
            console.print(f"   📥 Cloning {url}...")
            clone_repo(url, dest, verbose=verbose)
            roots.append(dest)
            continue

        local = Path(local)
        if not local.is_dir():
            msg = f"Local {name} directory not found: {local}"
            raise SourceError(msg, details={"path": str(local)})
        console.print(f"   📂 Using local {name}: {local}")
        roots.append(local)

    return roots[0], roots[1]


class SourceTree:
    """Lazy, restartable traversal of the two BMAD source trees."""

    def __init__(self, bundles_root: Path, method_root: Path) -> None:
        """Initialize source tree.

        Args:
            bundles_root: bmad-bundles checkout (persona XML bundles)
            method_root: BMAD-METHOD checkout (workflows, tasks, data)
        """
        self.bundles_root = Path(bundles_root)
        self.method_root = Path(method_root)

    def personas_dir(self, module: str) -> Path:
        """Directory of a module's bundled persona XML files."""
        return self.bundles_root / module / "agents"

    def module_dir(self, module: str) -> Path:
        """A module's directory inside BMAD-METHOD."""
        return self.method_root / "src" / "modules" / module

    def workflows_dir(self, module: str) -> Path:
        """Root of a module's workflow tree."""
        return self.module_dir(module) / "workflows"

    def tasks_dir(self, module: str) -> Path:
        """Directory of a module's standalone tasks."""
        return self.module_dir(module) / "tasks"

    def iter_personas(
        self,
        module: str,
        report: ConversionReport,
    ) -> Iterator[SourceItem]:
        """Yield a module's persona bundles in directory order."""
        root = self.personas_dir(module)
        paths = self._list(module, SourceKind.PERSONA, root, f"*{PERSONA_SUFFIX}", report)
        yield from self._load_all(module, SourceKind.PERSONA, root, paths, report)

    def iter_workflows(
        self,
        module: str,
        report: ConversionReport,
    ) -> Iterator[SourceItem]:
        """Yield every ``workflow*.md`` under a module's workflow tree."""
        root = self.workflows_dir(module)
        paths = self._list(
            module,
            SourceKind.WORKFLOW,
            root,
            WORKFLOW_GLOB,
            report,
            recursive=True,
        )
        yield from self._load_all(module, SourceKind.WORKFLOW, root, paths, report)

    def iter_tasks(
        self,
        module: str,
        report: ConversionReport,
    ) -> Iterator[SourceItem]:
        """Yield a module's task documents in directory order."""
        root = self.tasks_dir(module)
        paths = self._list(module, SourceKind.TASK, root, f"*{TASK_SUFFIX}", report)
        yield from self._load_all(module, SourceKind.TASK, root, paths, report)

    def data_dirs(self, module: str) -> list[tuple[str, Path]]:
        """Supporting ``data``/``docs`` directories present for a module."""
        found = []
        for subdir in DATA_SUBDIRS:
            path = self.module_dir(module) / subdir
            if path.is_dir():
                found.append((subdir, path))
        return found

    def collect_auxiliary(
        self,
        item: SourceItem,
        report: ConversionReport,
    ) -> AuxiliaryContent:
        """Gather the steps, templates and data files next to a workflow."""
        base = item.source_path.parent
        steps = [p for p in self._files(base / "steps", report) if p.suffix == ".md"]
        data = self._files(base / "data", report)
        templates = [
            p
            for p in self._files(base, report)
            if any(marker in p.name.lower() for marker in TEMPLATE_MARKERS)
        ]
        return AuxiliaryContent(
            steps=self._read_named(steps, report),
            templates=self._read_named(templates, report),
            data=self._read_named(data, report),
        )

    def _list(
        self,
        module: str,
        kind: SourceKind,
        root: Path,
        pattern: str,
        report: ConversionReport,
        recursive: bool = False,
    ) -> list[Path]:
        """Sorted files matching a pattern; a listing failure is an error."""
        try:
            found = root.rglob(pattern) if recursive else root.glob(pattern)
            return sorted(p for p in found if p.is_file())
        except OSError as e:
            report.error(f"{kind.value} {module}: list {root}: {e}")
            return []

    def _files(self, directory: Path, report: ConversionReport) -> list[Path]:
        if not directory.is_dir():
            return []
        try:
            return sorted(p for p in directory.iterdir() if p.is_file())
        except OSError as e:
            report.error(f"list {directory}: {e}")
            return []

    def _read_named(
        self,
        paths: list[Path],
        report: ConversionReport,
    ) -> list[NamedContent]:
        contents = []
        for path in paths:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                report.error(f"read {path}: {e}")
                continue
            contents.append(NamedContent(name=path.name, content=text))
        return contents

    def _load_all(
        self,
        module: str,
        kind: SourceKind,
        root: Path,
        paths: list[Path],
        report: ConversionReport,
    ) -> Iterator[SourceItem]:
        for path in paths:
            rel = path.relative_to(root).as_posix()
            try:
                body = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                report.error(f"{kind.value} {module}/{rel}: read: {e}")
                continue
            yield SourceItem(
                module=module,
                kind=kind,
                relative_path=rel,
                source_path=path,
                body=body,
            )
