"""
Patch registry for versioned migrations.

Patches are registered in ascending version order, each with:
- Apply: a zero-argument callable performing the migration
- Rollback: an optional zero-argument callable undoing it
- Dependencies: versions that must be applied earlier in the same run

The registry only validates and indexes patches. Ordering, gating and
rollback belong to the Orchestrator.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Optional
import logging

from patch_core.evolution.errors import (
    InvalidApply,
    InvalidVersion,
    UnknownDependency,
)

logger = logging.getLogger("patch.evolution.registry")

Operation = Callable[[], object]


def _is_version(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class Patch:
    """One versioned unit of migration work."""

    version: int
    apply: Operation
    rollback: Optional[Operation] = None
    dependencies: frozenset = field(default_factory=frozenset)
    description: str = ""

    @property
    def reversible(self) -> bool:
        """Whether this patch has a rollback operation."""
        return self.rollback is not None

    @property
    def id(self) -> str:
        return f"v{self.version}"


class PatchRegistry:
    """
    Catalog of known patches keyed by version.

    Registration is monotonic: each version must be strictly greater than
    every version accepted before it, so duplicates and out-of-order
    definitions are both rejected.

    With strict_dependencies (the default) every declared dependency must
    already be registered. Without it, unknown dependencies are accepted
    and are simply never satisfied during a run.
    """

    def __init__(self, strict_dependencies: bool = True):
        self.strict_dependencies = strict_dependencies
        self._patches: dict[int, Patch] = {}
        self._dependencies: dict[int, frozenset] = {}
        self._ceiling = 0

    def register(
        self,
        version: int,
        apply: Operation,
        rollback: Optional[Operation] = None,
        dependencies: Optional[Iterable[int]] = None,
        description: str = "",
    ) -> Patch:
        """
        Register a patch.

        Args:
            version: Unique positive version, above every registered version
            apply: Callable performing the migration
            rollback: Optional callable undoing apply
            dependencies: Versions that must be applied first in the same run
            description: Human-readable summary

        Returns:
            The registered Patch

        Raises:
            InvalidVersion: Version (or a dependency) is not a positive int,
                            or version is not above the registry ceiling
            InvalidApply: apply, or a given rollback, is not callable
            UnknownDependency: A dependency is not registered (strict mode)
        """
        if not _is_version(version):
            raise InvalidVersion(f"Patch version must be a positive integer, got {version!r}", version)
        if version <= self._ceiling:
            raise InvalidVersion(
                f"Patch version {version} must be greater than the highest registered version {self._ceiling}",
                version,
            )
        if not callable(apply):
            raise InvalidApply(f"Patch function for version {version} must be callable", version)
        if rollback is not None and not callable(rollback):
            raise InvalidApply(f"Rollback function for version {version} must be callable", version)

        deps = frozenset(dependencies or ())
        for dep in deps:
            if not _is_version(dep):
                raise InvalidVersion(
                    f"Dependency {dep!r} of version {version} must be a positive integer",
                    version,
                )
        for dep in sorted(deps):
            if self.strict_dependencies and dep not in self._patches:
                raise UnknownDependency(
                    f"Dependency patch not found for version {dep} (required by {version})",
                    version,
                    dep,
                )

        patch = Patch(
            version=version,
            apply=apply,
            rollback=rollback,
            dependencies=deps,
            description=description,
        )
        self._patches[version] = patch
        self._ceiling = version
        self._index(patch)
        logger.debug(f"Registered patch {patch.id} (dependencies: {sorted(deps)})")
        return patch

    def _index(self, patch: Patch) -> None:
        # Only patches with dependencies get an entry
        if patch.dependencies:
            self._dependencies[patch.version] = patch.dependencies

    def dependencies_of(self, version: int) -> frozenset:
        """Dependencies declared by a version (empty if none or unknown)."""
        return self._dependencies.get(version, frozenset())

    def get(self, version: int) -> Optional[Patch]:
        """Get a patch by version."""
        return self._patches.get(version)

    def sorted_versions(self) -> list[int]:
        """All registered versions in ascending order."""
        return sorted(self._patches)

    @property
    def ceiling(self) -> int:
        """Highest version ever accepted (0 when empty)."""
        return self._ceiling

    def __len__(self) -> int:
        return len(self._patches)

    def __contains__(self, version: object) -> bool:
        return version in self._patches

    def __iter__(self) -> Iterator[Patch]:
        for version in self.sorted_versions():
            yield self._patches[version]
