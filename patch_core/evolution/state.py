"""Version cursor of the system being patched."""


class VersionState:
    """
    The current version of the target system.

    Owned by a single Orchestrator. Moves forward only through advance_to()
    and back only through reset_to().
    """

    def __init__(self, initial_version: int = 0):
        self.initial = initial_version
        self._current = initial_version

    @property
    def current(self) -> int:
        return self._current

    def advance_to(self, version: int) -> None:
        """Move the cursor to a newly applied version."""
        if version <= self._current:
            raise ValueError(f"Cannot advance from version {self._current} to {version}")
        self._current = version

    def reset_to(self, version: int) -> None:
        """Restore the cursor to a run baseline."""
        self._current = version

    def __repr__(self) -> str:
        return f"VersionState(current={self._current}, initial={self.initial})"
