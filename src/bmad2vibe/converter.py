"""Conversion pipeline from BMAD sources to a Vibe home."""

from __future__ import annotations

import tomllib

from rich.console import Console

from .compiler import ArtifactBuilder, IndexRow, is_shortcut_record
from .exceptions import ArtifactStoreError
from .identifiers import build_skill_slug, data_container_slug, task_slug
from .metadata import extract_agent_meta
from .models import ConversionConfig, SourceItem
from .report import ConversionReport
from .safety import SafetyClassifier
from .sources import SourceTree
from .store import (
    INDEX_FILE,
    ArtifactStore,
    agent_path,
    prompt_path,
    skill_dir,
    skill_path,
)
from .validator import ConsistencyValidator


class Converter:
    """Runs the ordered conversion phases and collects a report."""

    def __init__(
        self,
        config: ConversionConfig,
        sources: SourceTree,
        store: ArtifactStore | None = None,
        classifier: SafetyClassifier | None = None,
        console: Console | None = None,
    ) -> None:
        """Initialize converter.

        Args:
            config: Run configuration
            sources: BMAD source trees
            store: Artifact store, defaults to one rooted at the Vibe home
            classifier: Safety classifier, defaults to the stock policy
            console: Console for progress output, quiet by default
        """
        self.config = config
        self.sources = sources
        self.console = console or Console(quiet=True)
        self.store = store or ArtifactStore(
            config.vibe_home,
            dry_run=config.dry_run,
            console=self.console,
        )
        self.classifier = classifier or SafetyClassifier()
        self.builder = ArtifactBuilder(self.classifier)
        self.report = ConversionReport()
        self._skill_sources: dict[str, str] = {}
        self._workflow_skills: dict[str, list[str]] = {}

    def run(self) -> ConversionReport:
        """Convert every configured module, then index and validate."""
        try:
            self.store.ensure_dirs()
        except ArtifactStoreError as e:
            self.report.error(str(e))

        phases = [
            ("📋 Phase 1: Converting agents...", self.convert_personas),
            ("⚙️  Phase 2: Converting workflows → skills...", self.convert_workflows),
            ("🔧 Phase 3: Converting tasks/tools → skills...", self.convert_tasks),
            (
                "🎯 Phase 4: Generating workflow shortcut agents...",
                self.generate_shortcut_agents,
            ),
            ("📄 Phase 5: Copying supporting data...", self.copy_module_data),
        ]
        for title, phase in phases:
            self.console.print(f"\n{title}")
            for module in self.config.modules:
                phase(module)

        self.console.print("\n📝 Phase 6: Generating AGENTS.md...")
        self.generate_index()

        self.console.print("\n🔍 Phase 7: Validating...")
        self.validate()

        return self.report

    # --- Phase 1 ---

    def convert_personas(self, module: str) -> None:
        """Persona XML bundles → agent TOML + prompt."""
        if not self.sources.personas_dir(module).is_dir():
            self.report.warn(f"no agents dir for module {module!r} in bundles")
            return

        for item in self.sources.iter_personas(module, self.report):
            meta = extract_agent_meta(item.stem, item.body)
            tier = self.classifier.classify_persona(module, item.stem)
            record = self.builder.build_persona_agent(module, meta, tier)
            prompt = self.builder.build_persona_prompt(module, meta, item.body, item.kind)

            self._verbose(f"   ✅ {module}/{item.stem} → agent + prompt")
            if self._write(agent_path(record.identifier), self.builder.render_agent(record)):
                self.report.agents.append(record.identifier)
            if self._write(prompt_path(prompt.identifier), self.builder.render_prompt(prompt)):
                self.report.prompts.append(prompt.identifier)

    # --- Phase 2 ---

    def convert_workflows(self, module: str) -> None:
        """Workflow documents → skills with inlined steps, templates, data."""
        if not self.sources.workflows_dir(module).is_dir():
            self.report.warn(f"no workflows dir for module {module!r}")
            return

        for item in self.sources.iter_workflows(module, self.report):
            skill_slug = build_skill_slug(module, item.relative_path)
            if not self._claim_skill(skill_slug, self._source_key(item)):
                continue

            aux = self.sources.collect_auxiliary(item, self.report)
            skill = self.builder.build_workflow_skill(module, skill_slug, item.body, aux)

            self._verbose(f"   ⚙️  {item.relative_path} → {skill_slug}")
            if self._write(skill_path(skill_slug), self.builder.render_skill(skill)):
                self.report.skills.append(skill_slug)
                self._workflow_skills.setdefault(module, []).append(skill_slug)

    # --- Phase 3 ---

    def convert_tasks(self, module: str) -> None:
        """Standalone task documents → user-invocable skills."""
        if not self.sources.tasks_dir(module).is_dir():
            return

        for item in self.sources.iter_tasks(module, self.report):
            skill_slug = task_slug(module, item.stem)
            if not self._claim_skill(skill_slug, self._source_key(item)):
                continue

            skill = self.builder.build_task_skill(module, skill_slug, item.body)

            self._verbose(f"   🔧 {module}/{item.stem} → {skill_slug}")
            if self._write(skill_path(skill_slug), self.builder.render_skill(skill)):
                self.report.skills.append(skill_slug)

    # --- Phase 4 ---

    def generate_shortcut_agents(self, module: str) -> None:
        """One lightweight agent per workflow skill of this run.

        Launched as e.g. ``vibe --agent bmad-bmm-create-prd``. Persona agents
        produced in this run and hand-written agent files are never
        overwritten; previously generated shortcuts are.
        """
        for skill_slug in self._workflow_skills.get(module, []):
            record = self.builder.build_shortcut_agent(module, skill_slug)
            rel = agent_path(record.identifier)
            try:
                existing = self.store.read(rel)
            except ArtifactStoreError as e:
                self.report.error(str(e))
                continue
            if existing is not None and not is_shortcut_record(existing):
                continue

            prompt = self.builder.build_shortcut_prompt(module, skill_slug)

            self._verbose(f"   🎯 {record.identifier} → shortcut to {skill_slug}")
            if self._write(rel, self.builder.render_agent(record)):
                self.report.shortcut_agents.append(record.identifier)
            if self._write(prompt_path(prompt.identifier), self.builder.render_prompt(prompt)):
                self.report.prompts.append(prompt.identifier)

    # --- Phase 5 ---

    def copy_module_data(self, module: str) -> None:
        """Copy a module's ``data``/``docs`` trees into bulk-data containers."""
        for subdir, source in self.sources.data_dirs(module):
            container = data_container_slug(module, subdir)
            if not self._claim_skill(container, f"{module}/data:{subdir}"):
                continue
            rel_dest = skill_dir(container)
            try:
                self.store.copy_tree(source, rel_dest)
            except ArtifactStoreError as e:
                self.report.warn(f"copy {module}/{subdir}: {e}")
                continue
            self._verbose(f"   📄 {module}/{subdir} copied")

    # --- Phase 6 ---

    def generate_index(self) -> None:
        """Write AGENTS.md listing every agent visible in the store."""
        rows = []
        for identifier in self.store.agent_identifiers():
            try:
                text = self.store.read(agent_path(identifier))
            except ArtifactStoreError as e:
                self.report.error(str(e))
                continue
            if text is None:
                continue
            try:
                data = tomllib.loads(text)
            except tomllib.TOMLDecodeError as e:
                self.report.warn(f"index: skipping {identifier}: invalid TOML: {e}")
                continue
            rows.append(
                IndexRow(
                    identifier=identifier,
                    display_name=str(data.get("display_name", identifier)),
                    description=str(data.get("description", "")),
                    shortcut=is_shortcut_record(text),
                ),
            )

        self._write(INDEX_FILE, self.builder.render_agents_index(rows))
        self._verbose("   📝 AGENTS.md generated")

    # --- Phase 7 ---

    def validate(self) -> None:
        """Check the written Vibe home.

        This is the one phase that does not run in preview mode: the checks
        inspect files on disk, and a preview run writes none. The report's
        ``validation`` stays None so callers can tell the check was skipped.
        """
        if self.config.dry_run:
            self.console.print("   (skipped in dry-run)")
            return

        result = ConsistencyValidator(self.config.vibe_home).validate()
        self.report.add_validation(result)
        self.console.print(
            f"   Agents: {result.agent_count} | Prompts: {result.prompt_count} "
            f"| Skills: {result.skill_count}",
        )

    # --- Helpers ---

    def _source_key(self, item: SourceItem) -> str:
        return f"{item.module}/{item.kind.value}:{item.relative_path}"

    def _claim_skill(self, skill_slug: str, key: str) -> bool:
        """Register a skill identifier, refusing collisions within a run."""
        owner = self._skill_sources.setdefault(skill_slug, key)
        if owner == key:
            return True
        self.report.error(
            f"identifier collision: {skill_slug} from {key} already produced by {owner}",
        )
        return False

    def _write(self, rel_path: str, content: str) -> bool:
        try:
            self.store.write(rel_path, content)
        except ArtifactStoreError as e:
            self.report.error(str(e))
            return False
        return True

    def _verbose(self, message: str) -> None:
        if self.config.verbose:
            self.console.print(message)
