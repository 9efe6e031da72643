"""Run logs: one JSON file per orchestrator run."""

import json
from datetime import datetime
from pathlib import Path
from typing import Union
from uuid import uuid4

from patch_core.evolution.errors import RunFailure
from patch_core.evolution.orchestrator import AppliedSummary


def _ensure_dir(path: Path) -> None:
    """Ensure directory exists."""
    path.mkdir(parents=True, exist_ok=True)


def summary_to_dict(summary: AppliedSummary) -> dict:
    """Serialise a successful run."""
    return {
        "outcome": "succeeded",
        "baseline_version": summary.baseline_version,
        "final_version": summary.final_version,
        "applied": list(summary.applied),
        "skipped": list(summary.skipped),
    }


def failure_to_dict(failure: RunFailure) -> dict:
    """Serialise a rolled-back run."""
    return {
        "outcome": "rolled_back",
        "baseline_version": failure.baseline_version,
        "final_version": failure.baseline_version,
        "failed_version": failure.version,
        "error": f"{type(failure.error).__name__}: {failure.error}",
        "rollbacks": [
            {
                "version": attempt.version,
                "performed": attempt.performed,
                "error": str(attempt.error.error) if attempt.error else None,
            }
            for attempt in failure.rollbacks
        ],
    }


def log_run(name: str, data: dict, log_dir: Union[str, Path] = "logs") -> str:
    """
    Write a run log entry.

    Args:
        name: Manifest (or caller) name, used as the log subdirectory
        data: Outcome dict from summary_to_dict / failure_to_dict
        log_dir: Root log directory

    Returns:
        Path to the log file
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_id = str(uuid4())[:8]

    run_dir = Path(log_dir) / "runs" / name
    _ensure_dir(run_dir)

    log_path = run_dir / f"{timestamp}_{log_id}.json"

    log_entry = {
        "id": f"{timestamp}_{log_id}",
        "timestamp": datetime.now().isoformat(),
        **data
    }

    with open(log_path, "w") as f:
        json.dump(log_entry, f, indent=2, default=str)

    return str(log_path)
