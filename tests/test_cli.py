"""Tests for CLI commands."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from bmad2vibe.cli import app


class TestCLI:
    """Test CLI commands."""

    @pytest.fixture
    def runner(self) -> CliRunner:
        """Create CLI test runner."""
        return CliRunner()

    def _convert_args(self, source_roots: tuple[Path, Path], home: Path) -> list[str]:
        bundles, method = source_roots
        return [
            "convert",
            "--modules",
            "demo",
            "--bundles-dir",
            str(bundles),
            "--method-dir",
            str(method),
            "--vibe-home",
            str(home),
        ]

    def test_version_command(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "bmad2vibe version" in result.stdout

    def test_version_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "bmad2vibe version" in result.stdout

    def test_convert_local_sources(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        vibe_home: Path,
    ) -> None:
        result = runner.invoke(app, self._convert_args(source_roots, vibe_home))

        assert result.exit_code == 0, result.stdout
        assert "Conversion Report" in result.stdout
        assert "All checks passed" in result.stdout
        assert (vibe_home / "agents" / "bmad-demo-analyst.toml").is_file()
        assert (vibe_home / "AGENTS.md").is_file()

    def test_convert_dry_run(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        tmp_path: Path,
    ) -> None:
        home = tmp_path / "untouched"
        args = [*self._convert_args(source_roots, home), "--dry-run"]
        result = runner.invoke(app, args)

        assert result.exit_code == 0, result.stdout
        assert "DRY RUN" in result.stdout
        assert "[DRY]" in result.stdout
        assert not home.exists()

    def test_convert_empty_modules_rejected(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        vibe_home: Path,
    ) -> None:
        args = self._convert_args(source_roots, vibe_home)
        args[args.index("demo")] = " , "
        result = runner.invoke(app, args)

        assert result.exit_code == 2
        assert "Invalid configuration" in result.stdout
        assert list(vibe_home.iterdir()) == []

    def test_convert_missing_local_source(
        self,
        runner: CliRunner,
        tmp_path: Path,
        vibe_home: Path,
    ) -> None:
        roots = (tmp_path / "nope-bundles", tmp_path / "nope-method")
        result = runner.invoke(app, self._convert_args(roots, vibe_home))

        assert result.exit_code == 1
        assert "Local bmad-bundles directory not found" in result.stdout
        assert list(vibe_home.iterdir()) == []

    def test_convert_with_safety_config(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        vibe_home: Path,
        tmp_path: Path,
    ) -> None:
        policy = tmp_path / "safety.yaml"
        policy.write_text(
            yaml.safe_dump({"persona_overrides": {"demo": {"analyst": "safe"}}}),
            encoding="utf-8",
        )
        args = [*self._convert_args(source_roots, vibe_home), "--safety-config", str(policy)]
        result = runner.invoke(app, args)

        assert result.exit_code == 0, result.stdout
        text = (vibe_home / "agents" / "bmad-demo-analyst.toml").read_text(encoding="utf-8")
        assert 'safety = "safe"' in text
        assert "auto_approve = true" in text

    def test_convert_bad_safety_config(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        vibe_home: Path,
        tmp_path: Path,
    ) -> None:
        policy = tmp_path / "safety.yaml"
        policy.write_text("unknown_key: 1\n", encoding="utf-8")
        args = [*self._convert_args(source_roots, vibe_home), "--safety-config", str(policy)]
        result = runner.invoke(app, args)

        assert result.exit_code == 1
        assert "Schema validation failed" in result.stdout

    def test_validate_command(
        self,
        runner: CliRunner,
        source_roots: tuple[Path, Path],
        vibe_home: Path,
    ) -> None:
        runner.invoke(app, self._convert_args(source_roots, vibe_home))
        result = runner.invoke(app, ["validate", "--vibe-home", str(vibe_home)])

        assert result.exit_code == 0, result.stdout
        assert "All checks passed" in result.stdout

    def test_validate_reports_ghost_prompt(self, runner: CliRunner, vibe_home: Path) -> None:
        agents = vibe_home / "agents"
        agents.mkdir()
        (agents / "bmad-demo-ghost.toml").write_text(
            'display_name = "Ghost"\ndescription = "g"\nsafety = "safe"\n'
            'system_prompt_id = "bmad-demo-ghost"\nenabled_tools = ["read_file"]\n',
            encoding="utf-8",
        )
        result = runner.invoke(app, ["validate", "--vibe-home", str(vibe_home)])

        assert result.exit_code == 1
        assert "Errors: 1" in result.stdout
        assert "bmad-demo-ghost.md not found" in result.stdout

    def test_validate_missing_home(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["validate", "--vibe-home", str(tmp_path / "absent")])
        assert result.exit_code == 1
        assert "Vibe home not found" in result.stdout
