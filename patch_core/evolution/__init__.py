"""
Versioned patch orchestration.

Patches are registered with a version, an apply operation, an optional
rollback and optional dependencies. A run applies them in version order,
skips those whose dependencies were not applied earlier in the same run,
and rolls back everything it applied if a patch fails.

Usage:
    from patch_core.evolution import Orchestrator, RunFailure

    orchestrator = Orchestrator()
    orchestrator.register(1, create_table, rollback=drop_table)
    orchestrator.register(2, add_index, dependencies=[1])

    try:
        summary = orchestrator.run()
    except RunFailure as failure:
        print(failure.version, failure.rollback_errors)

CLI:
    # List patches in a manifest
    python -m patch_core.evolution list patches.yaml

    # Dry-run
    python -m patch_core.evolution plan patches.yaml

    # Apply
    python -m patch_core.evolution run patches.yaml
"""

from patch_core.evolution.errors import (
    ErrorKind,
    InvalidApply,
    InvalidVersion,
    ManifestError,
    PatchError,
    RegistrationError,
    RollbackError,
    RunFailure,
    UnknownDependency,
    UsageError,
)
from patch_core.evolution.manifest import Manifest, PatchSpec, resolve_operation
from patch_core.evolution.orchestrator import (
    AppliedSummary,
    Orchestrator,
    OrchestratorState,
    RollbackAttempt,
)
from patch_core.evolution.registry import Patch, PatchRegistry
from patch_core.evolution.state import VersionState

__all__ = [
    "AppliedSummary",
    "ErrorKind",
    "InvalidApply",
    "InvalidVersion",
    "Manifest",
    "ManifestError",
    "Orchestrator",
    "OrchestratorState",
    "Patch",
    "PatchError",
    "PatchRegistry",
    "PatchSpec",
    "RegistrationError",
    "RollbackAttempt",
    "RollbackError",
    "RunFailure",
    "UnknownDependency",
    "UsageError",
    "VersionState",
    "resolve_operation",
]
