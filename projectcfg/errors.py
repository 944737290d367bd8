"""Error taxonomy raised while applying conventions."""

from __future__ import annotations

from pathlib import Path


class ProjectCfgError(RuntimeError):
    """Base class for failures that abort a convention run.

    Every error names the convention module, the operation that failed and the
    concrete cause. The orchestrator fills in ``module`` when the raising code
    did not know it (for example the reconciler or the ledger).
    """

    def __init__(self, cause: str, *, module: str | None = None, operation: str | None = None) -> None:
        self.cause = cause
        self.module = module
        self.operation = operation
        super().__init__(cause)

    def __str__(self) -> str:
        prefix = f"[{self.module}] " if self.module else ""
        operation = f"{self.operation}: " if self.operation else ""
        return f"{prefix}{operation}{self.cause}"


class ConfigurationError(ProjectCfgError):
    """A module's hard precondition is unmet (missing resource, conflicting flags)."""

    def __init__(
        self,
        cause: str,
        *,
        module: str | None = None,
        operation: str | None = None,
        resource: str | None = None,
    ) -> None:
        super().__init__(cause, module=module, operation=operation)
        self.resource = resource


class DependencyConflictError(ProjectCfgError):
    """Two declarations pin incompatible versions for the same coordinate."""


class ReconciliationError(ProjectCfgError):
    """A managed file cannot be reconciled without guessing the user's intent."""

    def __init__(
        self,
        cause: str,
        *,
        path: Path | None = None,
        module: str | None = None,
        operation: str | None = "reconcile",
    ) -> None:
        if path is not None:
            cause = f"{path}: {cause}"
        super().__init__(cause, module=module, operation=operation)
        self.path = path


class ConventionIOError(ProjectCfgError):
    """Reading or writing a file failed while a module was applying."""

    def __init__(self, error: OSError, *, module: str | None = None, operation: str | None = None) -> None:
        super().__init__(str(error), module=module, operation=operation)
        self.error = error


__all__ = [
    "ConfigurationError",
    "ConventionIOError",
    "DependencyConflictError",
    "ProjectCfgError",
    "ReconciliationError",
]
