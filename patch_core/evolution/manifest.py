"""
YAML patch manifests.

A manifest lists patches with import paths to their operations:

    initial_version: 0
    strict_dependencies: true
    patches:
      - version: 1
        apply: myapp.patches:add_inventory
        rollback: myapp.patches:drop_inventory
        description: Add inventory table
      - version: 2
        apply: myapp.patches:backfill_inventory
        dependencies: [1]

Entries are registered in file order, so out-of-order versions are
rejected by the registry rather than silently sorted.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import importlib
import logging

import yaml

from patch_core.evolution.errors import ManifestError
from patch_core.evolution.orchestrator import Orchestrator
from patch_core.evolution.registry import Operation

logger = logging.getLogger("patch.evolution.manifest")


def resolve_operation(target: str) -> Operation:
    """
    Import an operation from a "package.module:attribute" path.

    Raises:
        ManifestError: Malformed path, missing module or attribute
    """
    if not isinstance(target, str) or ":" not in target:
        raise ManifestError(f"Operation must be given as 'module:attribute', got {target!r}")

    module_name, _, attr_path = target.partition(":")
    try:
        obj = importlib.import_module(module_name)
    except Exception as e:
        raise ManifestError(f"Cannot import module {module_name!r} for {target}: {e!r}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ManifestError(f"Module {module_name!r} has no attribute {attr_path!r}") from e

    return obj


@dataclass
class PatchSpec:
    """One manifest entry, before its operations are imported."""

    version: int
    apply: str
    rollback: Optional[str] = None
    dependencies: list[int] = field(default_factory=list)
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PatchSpec":
        if not isinstance(data, dict):
            raise ManifestError(f"Patch entry must be a mapping, got {type(data).__name__}")
        for key in ("version", "apply"):
            if key not in data:
                raise ManifestError(f"Patch entry is missing required field {key!r}: {data}")

        dependencies = data.get("dependencies") or []
        if not isinstance(dependencies, list):
            raise ManifestError(f"Dependencies of version {data['version']} must be a list")

        return cls(
            version=data["version"],
            apply=data["apply"],
            rollback=data.get("rollback"),
            dependencies=dependencies,
            description=data.get("description", ""),
        )


@dataclass
class Manifest:
    """A parsed patch manifest."""

    patches: list[PatchSpec] = field(default_factory=list)
    initial_version: int = 0
    strict_dependencies: bool = True
    source: Optional[Path] = None

    @property
    def name(self) -> str:
        return self.source.stem if self.source else "manifest"

    @classmethod
    def from_dict(cls, data: dict, source: Optional[Path] = None) -> "Manifest":
        if not isinstance(data, dict):
            raise ManifestError("Manifest must be a mapping with a 'patches' list")

        entries = data.get("patches") or []
        if not isinstance(entries, list):
            raise ManifestError("Manifest 'patches' must be a list")

        initial_version = data.get("initial_version", 0)
        if isinstance(initial_version, bool) or not isinstance(initial_version, int) or initial_version < 0:
            raise ManifestError(f"Manifest initial_version must be a non-negative integer, got {initial_version!r}")

        strict_dependencies = data.get("strict_dependencies", True)
        if not isinstance(strict_dependencies, bool):
            raise ManifestError(f"Manifest strict_dependencies must be true or false, got {strict_dependencies!r}")

        return cls(
            patches=[PatchSpec.from_dict(entry) for entry in entries],
            initial_version=initial_version,
            strict_dependencies=strict_dependencies,
            source=source,
        )

    @classmethod
    def load(cls, path: Path) -> "Manifest":
        """Load a manifest from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ManifestError(f"Manifest not found: {path}")

        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ManifestError(f"Invalid YAML in {path}: {e}") from e

        manifest = cls.from_dict(data or {}, source=path)
        logger.debug(f"Loaded {len(manifest.patches)} patches from {path}")
        return manifest

    def build(self, initial_version: Optional[int] = None) -> Orchestrator:
        """
        Create an Orchestrator with every manifest patch registered.

        Args:
            initial_version: Overrides the manifest's initial_version

        Raises:
            ManifestError: An operation cannot be imported
            RegistrationError: A patch is rejected by the registry
        """
        start = self.initial_version if initial_version is None else initial_version
        orchestrator = Orchestrator(
            initial_version=start,
            strict_dependencies=self.strict_dependencies,
        )

        for entry in self.patches:
            orchestrator.register(
                entry.version,
                resolve_operation(entry.apply),
                rollback=resolve_operation(entry.rollback) if entry.rollback else None,
                dependencies=entry.dependencies,
                description=entry.description,
            )

        logger.info(f"Registered {len(orchestrator.registry)} patches from {self.name}")
        return orchestrator
