"""projectcfg applies opinionated build conventions to declared projects."""

from .errors import (
    ConfigurationError,
    ConventionIOError,
    DependencyConflictError,
    ProjectCfgError,
    ReconciliationError,
)
from .models import (
    ProjectContext,
    ProjectFramework,
    ProjectLanguage,
    ProjectType,
    VersionPolicy,
)
from .orchestrator import Orchestrator, apply_project

__all__ = [
    "ConfigurationError",
    "ConventionIOError",
    "DependencyConflictError",
    "Orchestrator",
    "ProjectCfgError",
    "ProjectContext",
    "ProjectFramework",
    "ProjectLanguage",
    "ProjectType",
    "ReconciliationError",
    "VersionPolicy",
    "apply_project",
]
