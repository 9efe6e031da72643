"""Versioned patch orchestration library."""

from .evolution import Orchestrator, PatchRegistry, RunFailure
from .log import log_run

__version__ = "0.1.0"

__all__ = ['Orchestrator', 'PatchRegistry', 'RunFailure', 'log_run']
