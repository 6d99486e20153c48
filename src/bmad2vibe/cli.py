"""bmad2vibe command-line interface."""

from __future__ import annotations

import re
import shutil
import sys
import tempfile
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .converter import Converter
from .exceptions import Bmad2VibeError
from .models import ConversionConfig
from .policy import load_safety_policy
from .report import ReportSummary, ValidationResult
from .safety import SafetyClassifier
from .sources import SourceTree, resolve_sources
from .store import INDEX_FILE
from .validator import ConsistencyValidator

app = typer.Typer(
    name="bmad2vibe",
    help="bmad2vibe: convert BMAD Method agents, workflows and tasks to Mistral Vibe",
    add_completion=False,
)
console = Console()

DEFAULT_MODULES = "bmm,cis,bmgd"


def _get_version_string() -> str:
    """Get version string from package metadata or pyproject.toml."""
    try:
        return get_version("bmad2vibe")
    except PackageNotFoundError:
        pass

    # Development checkouts without installed metadata
    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        content = pyproject_path.read_text()
        match = re.search(r'version\s*=\s*["\']([^"\']+)["\']', content)
        if match:
            return f"{match.group(1)} (development)"

    return "unknown"


def _default_vibe_home() -> Path:
    return Path.home() / ".vibe"


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"bmad2vibe version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """bmad2vibe: convert BMAD Method artifacts to Mistral Vibe."""


@app.command()
def convert(
    vibe_home: Path | None = typer.Option(
        None,
        "--vibe-home",
        envvar="VIBE_HOME",
        help="Vibe home directory (defaults to ~/.vibe)",
    ),
    modules: str = typer.Option(
        DEFAULT_MODULES,
        "--modules",
        "-m",
        help="Comma-separated BMAD modules to convert",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be done without writing files",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Verbose output",
    ),
    cleanup: bool = typer.Option(
        True,
        "--cleanup/--no-cleanup",
        help="Remove temp cloned repos after conversion",
    ),
    bundles_dir: Path | None = typer.Option(
        None,
        "--bundles-dir",
        help="Use a local bmad-bundles directory instead of cloning",
    ),
    method_dir: Path | None = typer.Option(
        None,
        "--method-dir",
        help="Use a local BMAD-METHOD directory instead of cloning",
    ),
    safety_config: Path | None = typer.Option(
        None,
        "--safety-config",
        help="YAML file extending the safety tier overrides and tool grants",
    ),
) -> None:
    """Convert BMAD agents, workflows and tasks into Vibe agents and skills.

    Persona bundles become agent TOML files with paired prompts, workflows and
    tasks become SKILL.md skills, and every workflow also gets a shortcut
    agent. The generated Vibe home is validated at the end; the exit code is
    non-zero when any error was found.
    """
    try:
        config = ConversionConfig(
            vibe_home=vibe_home or _default_vibe_home(),
            modules=modules.split(","),
            dry_run=dry_run,
            verbose=verbose,
            cleanup=cleanup,
        )
    except ValidationError as e:
        console.print(f"[red]Error:[/red] Invalid configuration: {escape(str(e))}")
        raise typer.Exit(2) from e

    try:
        policy = load_safety_policy(safety_config) if safety_config else None
    except Bmad2VibeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    console.print("[bold blue]🚀 bmad2vibe: BMAD Method → Mistral Vibe converter[/bold blue]")
    console.print(f"   Target: {escape(str(config.vibe_home))}")
    console.print(f"   Modules: {', '.join(config.modules)}")
    if config.dry_run:
        console.print("   [yellow]⚠️  DRY RUN: no files will be written[/yellow]")
    console.print()

    tmp_dir = Path(tempfile.mkdtemp(prefix="bmad2vibe-"))
    try:
        bundles_root, method_root = resolve_sources(
            tmp_dir,
            bundles_dir=bundles_dir,
            method_dir=method_dir,
            verbose=verbose,
            console=console,
        )
        converter = Converter(
            config,
            SourceTree(bundles_root, method_root),
            classifier=SafetyClassifier(policy),
            console=console,
        )
        report = converter.run()
    except Bmad2VibeError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e
    finally:
        if config.cleanup:
            shutil.rmtree(tmp_dir, ignore_errors=True)
        else:
            console.print(f"📁 Temp directory: {escape(str(tmp_dir))}")

    summary = report.summarize()
    _print_report(config, summary)
    if summary.exit_code:
        raise typer.Exit(summary.exit_code)


@app.command()
def validate(
    vibe_home: Path | None = typer.Option(
        None,
        "--vibe-home",
        envvar="VIBE_HOME",
        help="Vibe home directory (defaults to ~/.vibe)",
    ),
) -> None:
    """Check an existing Vibe home for broken cross-references."""
    root = vibe_home or _default_vibe_home()
    if not root.is_dir():
        console.print(f"[red]Error:[/red] Vibe home not found at {escape(str(root))}")
        raise typer.Exit(1)

    result = ConsistencyValidator(root).validate()
    console.print(_counts_table(result))
    _print_findings(result.warnings, result.errors)

    if not result.passed:
        raise typer.Exit(1)
    console.print("\n[green]🎉 All checks passed![/green]")


@app.command()
def version() -> None:
    """Show bmad2vibe version information."""
    console.print(f"bmad2vibe version {_get_version_string()}")


def _counts_table(result: ValidationResult) -> Table:
    table = Table(title="Vibe Home")
    table.add_column("Artifact", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Agents", str(result.agent_count))
    table.add_row("Prompts", str(result.prompt_count))
    table.add_row("Skills", str(result.skill_count))
    return table


def _print_findings(warnings: list[str], errors: list[str]) -> None:
    if warnings:
        console.print(f"\n[yellow]⚠️  Warnings: {len(warnings)}[/yellow]")
        for warning in warnings:
            console.print(f"   ⚠️  {escape(warning)}")

    if errors:
        console.print(f"\n[red]❌ Errors: {len(errors)}[/red]")
        for error in errors:
            console.print(f"   ❌ {escape(error)}")


def _print_report(config: ConversionConfig, summary: ReportSummary) -> None:
    """Print the final conversion report."""
    rule = "═" * 60
    console.print(f"\n{rule}")
    console.print("[bold]📊 Conversion Report[/bold]")
    console.print(rule)

    console.print(f"\n[green]✅[/green] Persona agents: {len(summary.persona_agents)}")
    for agent in summary.persona_agents:
        console.print(f"   • {agent}")
    console.print(f"[green]✅[/green] Workflow agents: {len(summary.workflow_agents)}")
    console.print(f"[green]✅[/green] Skills:          {len(summary.skills)}")
    for skill in summary.skills:
        console.print(f"   • {skill}")

    if summary.validation is not None:
        console.print()
        console.print(_counts_table(summary.validation))

    _print_findings(summary.warnings, summary.errors)
    if summary.errors:
        return

    console.print("\n[green]🎉 All checks passed![/green]")
    console.print("\n📖 Usage:")
    if summary.persona_agents:
        console.print(f"  vibe --agent {summary.persona_agents[0]}")
    console.print(f"\n  AGENTS.md: {escape(str(config.vibe_home / INDEX_FILE))}")
    console.print("  → Copy to project root for AGENTS.md support")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
