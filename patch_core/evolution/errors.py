"""
Error taxonomy for the patch engine.

Every error carries an ErrorKind so callers can branch on the category
instead of parsing messages:

    try:
        orchestrator.run()
    except RunFailure as failure:
        if failure.rollback_errors:
            ...
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of a patch engine error."""

    INVALID_VERSION = "invalid_version"
    INVALID_APPLY = "invalid_apply"
    UNKNOWN_DEPENDENCY = "unknown_dependency"
    RUN_FAILED = "run_failed"
    ROLLBACK_FAILED = "rollback_failed"
    USAGE = "usage"
    MANIFEST = "manifest"


class PatchError(Exception):
    """Base class for all patch engine errors."""

    kind: ErrorKind


class RegistrationError(PatchError, ValueError):
    """A patch was rejected at registration. The registry is unchanged."""

    def __init__(self, message: str, version: object = None):
        super().__init__(message)
        self.version = version


class InvalidVersion(RegistrationError):
    """Version is not a positive int above the registry ceiling."""

    kind = ErrorKind.INVALID_VERSION


class InvalidApply(RegistrationError):
    """Apply (or rollback) operation is not callable."""

    kind = ErrorKind.INVALID_APPLY


class UnknownDependency(RegistrationError):
    """A declared dependency is not a registered version."""

    kind = ErrorKind.UNKNOWN_DEPENDENCY

    def __init__(self, message: str, version: object = None, dependency: object = None):
        super().__init__(message, version)
        self.dependency = dependency


class RollbackError(PatchError):
    """
    A rollback operation failed.

    Diagnostic only: attached to RunFailure, never raised by a run.
    """

    kind = ErrorKind.ROLLBACK_FAILED

    def __init__(self, version: int, error: BaseException):
        super().__init__(f"Failed to roll back patch for version {version}: {error}")
        self.version = version
        self.error = error


class RunFailure(PatchError):
    """
    A patch failed to apply and the run was rolled back.

    Attributes:
        version: Version whose apply operation failed
        error: The exception raised by that apply operation
        baseline_version: Version restored by the rollback
        rollbacks: One RollbackAttempt per patch applied before the failure,
                   newest first
    """

    kind = ErrorKind.RUN_FAILED

    def __init__(
        self,
        version: int,
        error: BaseException,
        baseline_version: int,
        rollbacks: Optional[list] = None,
    ):
        super().__init__(f"Failed to apply patch for version {version}: {error}")
        self.version = version
        self.error = error
        self.baseline_version = baseline_version
        self.rollbacks = list(rollbacks or [])

    @property
    def rollback_errors(self) -> list[RollbackError]:
        """Rollback failures, in the order they were attempted."""
        return [r.error for r in self.rollbacks if r.error is not None]

    @property
    def rolled_back_versions(self) -> list[int]:
        """Versions that received a rollback attempt, newest first."""
        return [r.version for r in self.rollbacks]


class UsageError(PatchError, RuntimeError):
    """The orchestrator was used in a state that does not allow the call."""

    kind = ErrorKind.USAGE


class ManifestError(PatchError, ValueError):
    """A patch manifest is malformed or references an unresolvable operation."""

    kind = ErrorKind.MANIFEST
