"""Drives convention modules over one project unit or a whole project tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import DeclaredBuild, ProjectCfgConfig, load_config
from .conventions import ConventionModule, ConventionRun, discover_conventions
from .errors import ConventionIOError, ProjectCfgError
from .files import ManagedFileReconciler
from .host import HostProject, InMemoryHostProject
from .ledger import DependencyLedger
from .logging import get_logger
from .models import ModuleOutcome, ModuleState, ProjectContext, RunReport, VersionPolicy
from .plugins import PluginApplier

ConventionFactory = Callable[[], Sequence[ConventionModule]]


@dataclass
class TreeOutcome:
    """Reports for every project unit of a tree run, subprojects first."""

    reports: List[RunReport] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed_files(self) -> List[Path]:
        return [path for report in self.reports for path in report.changed_files]

    def report(self, project: str) -> RunReport:
        for report in self.reports:
            if report.project == project:
                return report
        raise KeyError(project)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "projects": [report.to_dict() for report in self.reports],
        }


class Orchestrator:
    """Runs convention modules in registration order, single pass, fail-fast.

    There is no rollback: when a module fails, plugins and dependencies applied
    by earlier modules stay on the host. Managed files are written once, after
    every module has applied, so an aborted run leaves them untouched. Reruns
    converge because every module is idempotent.
    """

    def __init__(
        self,
        versions: VersionPolicy | None = None,
        conventions: ConventionFactory | None = None,
    ) -> None:
        self.versions = versions or VersionPolicy()
        self._conventions = conventions
        self.logger = get_logger("orchestrator")

    def run(
        self,
        context: ProjectContext,
        modules: Sequence[ConventionModule],
        host: HostProject,
        *,
        dry_run: bool = False,
    ) -> RunReport:
        """Run every module against one project unit and report their outcomes."""
        files = ManagedFileReconciler(dry_run=dry_run)
        run = ConventionRun(
            context=context,
            host=host,
            ledger=DependencyLedger(host),
            plugins=PluginApplier(host),
            files=files,
            versions=self.versions,
        )
        report = RunReport(project=context.name)
        self.logger.info("Applying %d conventions to %s", len(modules), context.name)

        for module in modules:
            outcome = ModuleOutcome(name=module.name)
            report.outcomes.append(outcome)
            self._drive(module, run, outcome)

        try:
            files.flush()
        except ProjectCfgError as exc:
            self.logger.error("Convention run aborted: %s", exc)
            raise

        report.files = list(files.results)
        snapshot = getattr(host, "snapshot", None)
        report.host = snapshot() if callable(snapshot) else None
        return report

    def run_tree(
        self,
        config: ProjectCfgConfig,
        *,
        dry_run: bool = False,
        hosts: Optional[Dict[str, HostProject]] = None,
    ) -> TreeOutcome:
        """Run one full pass per project unit: subprojects first, then the root.

        ``hosts`` maps project names to host models; missing entries are built
        from the ``declared`` sections of the configuration.
        """
        hosts = dict(hosts or {})
        root_context = config.root_context()
        root_host = hosts.get(root_context.name) or build_host(
            root_context.name, config.root, config.declared
        )

        units: List[tuple[ProjectContext, HostProject]] = []
        for subproject in config.subprojects:
            context = config.subproject_context(root_context, subproject)
            host = hosts.get(subproject.name) or build_host(
                subproject.name, subproject.path, subproject.declared
            )
            if isinstance(root_host, InMemoryHostProject) and isinstance(host, InMemoryHostProject):
                root_host.add_subproject(host)
            units.append((context, host))
        units.append((root_context, root_host))

        outcome = TreeOutcome(dry_run=dry_run)
        for context, host in units:
            modules = self._modules(config)
            outcome.reports.append(self.run(context, modules, host, dry_run=dry_run))
        return outcome

    def _modules(self, config: ProjectCfgConfig) -> List[ConventionModule]:
        if self._conventions is not None:
            return list(self._conventions())
        return discover_conventions(config.conventions.enabled)

    def _drive(self, module: ConventionModule, run: ConventionRun, outcome: ModuleOutcome) -> None:
        operation = "init"
        try:
            module.init(run)
            outcome.state = ModuleState.INITIALIZED
            operation = "is_applicable"
            if not module.is_applicable(run.context):
                outcome.state = ModuleState.SKIPPED
                self.logger.debug("Skipped convention [%s] for %s", module.name, run.context.name)
                return
            operation = "apply"
            module.apply(run)
        except ProjectCfgError as exc:
            if exc.module is None:
                exc.module = module.name
            if exc.operation is None:
                exc.operation = operation
            self.logger.error("Convention run aborted: %s", exc)
            raise
        except OSError as exc:
            error = ConventionIOError(exc, module=module.name, operation=operation)
            self.logger.error("Convention run aborted: %s", error)
            raise error from exc
        outcome.state = ModuleState.APPLIED
        self.logger.info("Applied convention [%s] to %s", module.name, run.context.name)


def build_host(name: str, project_dir: Path, declared: DeclaredBuild) -> InMemoryHostProject:
    """Seed an in-memory host model from what the build script already declares."""
    return InMemoryHostProject(
        name,
        project_dir,
        plugins=declared.plugins,
        dependencies=declared.dependencies,
        source_sets=declared.source_sets,
    )


def apply_project(path: str | Path, *, dry_run: bool = False) -> TreeOutcome:
    """Load ``.projectcfg.yml`` under ``path`` and run every project unit."""
    project_path = Path(path).expanduser().resolve()
    if not project_path.exists():
        raise FileNotFoundError(f"Project path not found: {project_path}")
    config = load_config(project_path)
    orchestrator = Orchestrator(versions=config.versions)
    return orchestrator.run_tree(config, dry_run=dry_run)


__all__ = ["Orchestrator", "TreeOutcome", "apply_project", "build_host"]
