"""
Patch orchestrator.

Applies registered patches in ascending version order from the current
version forward:
1. Candidates are the registered versions above the current version
2. A candidate whose dependencies are not all applied earlier in the
   same run is skipped (single forward pass, skipped patches are not
   retried until the next run)
3. Each applied patch advances the current version
4. If an apply fails, every patch applied in the run is rolled back,
   newest first, the version is reset to the run baseline and RunFailure
   is raised

Usage:
    orchestrator = Orchestrator(initial_version=0)
    orchestrator.register(1, add_table, rollback=drop_table)
    orchestrator.register(2, backfill, dependencies=[1])
    summary = orchestrator.run()
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional
import logging

from patch_core.evolution.errors import RollbackError, RunFailure, UsageError
from patch_core.evolution.registry import Operation, Patch, PatchRegistry
from patch_core.evolution.state import VersionState

logger = logging.getLogger("patch.evolution.orchestrator")


class OrchestratorState(str, Enum):
    """Lifecycle of an orchestrator run."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    ROLLED_BACK = "rolled_back"


@dataclass
class RollbackAttempt:
    """
    Outcome of rolling back one applied patch.

    performed is False when the patch has no rollback operation.
    """

    version: int
    performed: bool = True
    error: Optional[RollbackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AppliedSummary:
    """Result of a successful run (or of a dry-run plan)."""

    baseline_version: int
    final_version: int
    applied: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.applied


class Orchestrator:
    """
    Drives the apply/rollback sequence for one patch registry.

    Each instance owns its registry, version cursor and applied set, so
    independent orchestrators can coexist in one process. An instance is
    not re-entrant: calling run() from inside a patch raises UsageError.
    """

    def __init__(
        self,
        initial_version: int = 0,
        registry: Optional[PatchRegistry] = None,
        strict_dependencies: bool = True,
    ):
        """
        Initialize orchestrator.

        Args:
            initial_version: Version the target system starts at
            registry: PatchRegistry to use. If None, creates an empty one.
            strict_dependencies: Require dependencies to be registered
                                 (ignored when a registry is given)
        """
        if isinstance(initial_version, bool) or not isinstance(initial_version, int) or initial_version < 0:
            raise ValueError(f"Initial version must be a non-negative integer, got {initial_version!r}")

        self._registry = registry if registry is not None else PatchRegistry(strict_dependencies)
        self._version = VersionState(initial_version)
        self._applied: list[int] = []
        self._state = OrchestratorState.IDLE

    @property
    def registry(self) -> PatchRegistry:
        return self._registry

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def current_version(self) -> int:
        """Version of the target system after the patches applied so far."""
        return self._version.current

    @property
    def applied(self) -> tuple:
        """Versions applied during the current (or last successful) run."""
        return tuple(self._applied)

    def register(
        self,
        version: int,
        apply: Operation,
        rollback: Optional[Operation] = None,
        dependencies: Optional[Iterable[int]] = None,
        description: str = "",
    ) -> Patch:
        """Register a patch. See PatchRegistry.register."""
        return self._registry.register(
            version,
            apply,
            rollback=rollback,
            dependencies=dependencies,
            description=description,
        )

    def pending(self) -> list[int]:
        """Registered versions above the current version, ascending."""
        current = self._version.current
        return [v for v in self._registry.sorted_versions() if v > current]

    def _satisfied(self, version: int, applied: set) -> bool:
        return self._registry.dependencies_of(version) <= applied

    def plan(self) -> AppliedSummary:
        """
        Dry run: which versions run() would apply if every apply succeeded.

        No operation is invoked and no state changes.
        """
        baseline = self._version.current
        applied: list[int] = []
        skipped: list[int] = []

        for version in self.pending():
            if self._satisfied(version, set(applied)):
                applied.append(version)
            else:
                skipped.append(version)

        return AppliedSummary(
            baseline_version=baseline,
            final_version=applied[-1] if applied else baseline,
            applied=applied,
            skipped=skipped,
        )

    def run(self) -> AppliedSummary:
        """
        Apply every eligible pending patch.

        Returns:
            AppliedSummary with the final version, applied and skipped versions

        Raises:
            UsageError: A run is already in progress
            RunFailure: A patch failed to apply; the run has been rolled back
        """
        if self._state is OrchestratorState.RUNNING:
            raise UsageError("Cannot start a run while another run is in progress")

        baseline = self._version.current
        candidates = self.pending()
        self._applied = []
        self._state = OrchestratorState.RUNNING
        applied_lookup: set = set()
        skipped: list[int] = []

        logger.info(f"Starting run from version {baseline} ({len(candidates)} pending)")

        for version in candidates:
            if not self._satisfied(version, applied_lookup):
                missing = sorted(self._registry.dependencies_of(version) - applied_lookup)
                logger.debug(f"Skipping patch v{version}: dependencies not applied in this run: {missing}")
                skipped.append(version)
                continue

            patch = self._registry.get(version)
            try:
                patch.apply()
            except Exception as e:
                logger.error(f"Failed to apply patch for version {version}: {e}")
                rollbacks = self._roll_back(baseline)
                raise RunFailure(version, e, baseline, rollbacks) from e
            except BaseException:
                logger.error(f"Run interrupted while applying patch for version {version}")
                self._roll_back(baseline)
                raise

            self._applied.append(version)
            applied_lookup.add(version)
            self._version.advance_to(version)
            logger.info(f"Patch applied for version: {version}")

        self._state = OrchestratorState.SUCCEEDED
        summary = AppliedSummary(
            baseline_version=baseline,
            final_version=self._version.current,
            applied=list(self._applied),
            skipped=skipped,
        )
        if skipped:
            logger.info(f"Run finished at version {summary.final_version}; skipped {skipped}")
        else:
            logger.info(f"Run finished at version {summary.final_version}")
        return summary

    def patch(
        self,
        version: int,
        apply: Operation,
        rollback: Optional[Operation] = None,
        dependencies: Optional[Iterable[int]] = None,
        description: str = "",
    ) -> AppliedSummary:
        """Register a patch and immediately run."""
        self.register(
            version,
            apply,
            rollback=rollback,
            dependencies=dependencies,
            description=description,
        )
        return self.run()

    def _roll_back(self, baseline: int) -> list[RollbackAttempt]:
        """
        Roll back every patch applied in this run, newest first.

        Every applied patch gets exactly one attempt; a failing rollback is
        recorded and the sequence continues. An interrupt (SystemExit,
        KeyboardInterrupt) is recorded too and re-raised once every rollback
        has been attempted.
        """
        attempts: list[RollbackAttempt] = []
        interrupt: Optional[BaseException] = None
        try:
            for version in reversed(self._applied):
                patch = self._registry.get(version)
                if not patch.reversible:
                    logger.debug(f"Patch v{version} has no rollback operation")
                    attempts.append(RollbackAttempt(version, performed=False))
                    continue
                try:
                    patch.rollback()
                except Exception as e:
                    logger.warning(f"Failed to rollback patch for version {version}: {e}")
                    attempts.append(RollbackAttempt(version, error=RollbackError(version, e)))
                except BaseException as e:
                    # Finish the remaining rollbacks, then re-raise the first interrupt
                    logger.warning(f"Rollback for version {version} interrupted: {e!r}")
                    attempts.append(RollbackAttempt(version, error=RollbackError(version, e)))
                    if interrupt is None:
                        interrupt = e
                else:
                    logger.info(f"Rolled back patch for version: {version}")
                    attempts.append(RollbackAttempt(version))
        finally:
            self._applied = []
            self._version.reset_to(baseline)
            self._state = OrchestratorState.ROLLED_BACK

        if interrupt is not None:
            raise interrupt
        return attempts
