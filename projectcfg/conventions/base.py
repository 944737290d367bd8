"""Base classes for convention modules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..files import ManagedFileReconciler
from ..host import HostProject
from ..ledger import DependencyLedger
from ..logging import ConventionLogger, convention_logger
from ..models import ProjectContext, VersionPolicy
from ..plugins import PluginApplier


@dataclass
class ConventionRun:
    """Everything a module may touch during one orchestration pass."""

    context: ProjectContext
    host: HostProject
    ledger: DependencyLedger
    plugins: PluginApplier
    files: ManagedFileReconciler
    versions: VersionPolicy

    def project_file(self, relative: str) -> Path:
        return self.context.project_dir / relative


class ConventionModule(ABC):
    """Contract for one opinionated configuration concern.

    Modules are stateless and instantiated fresh for every run. ``init`` always
    runs, ``is_applicable`` gates ``apply``, and ``apply`` must leave the same
    end state when repeated with unchanged inputs.
    """

    name: str = ""

    def init(self, run: ConventionRun) -> None:
        """Register constraints that must exist whether or not the module applies."""

    @abstractmethod
    def is_applicable(self, context: ProjectContext) -> bool:
        """Return True when ``apply`` should run. Must not change any state."""

    @abstractmethod
    def apply(self, run: ConventionRun) -> None:
        """Apply plugins, declare dependencies and reconcile managed files."""

    @property
    def log(self) -> ConventionLogger:
        return convention_logger(self.name)

    # Shortcuts that tag every declaration with this module's name.

    def add_dependency(self, run: ConventionRun, bucket: str, coordinate: str) -> bool:
        return run.ledger.ensure_dependency(bucket, coordinate, owner=self.name)

    def add_platform(self, run: ConventionRun, coordinate: str) -> bool:
        return run.ledger.ensure_platform_constraint(coordinate, owner=self.name)

    def apply_plugin(self, run: ConventionRun, plugin_id: str) -> bool:
        return run.plugins.ensure_plugin_applied(plugin_id, owner=self.name)
