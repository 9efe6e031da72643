"""
CLI for the patch-core evolution engine.

Usage:
    # List patches in a manifest
    python -m patch_core.evolution list patches.yaml

    # Show what a run would apply
    python -m patch_core.evolution plan patches.yaml --initial-version 2

    # Apply patches
    python -m patch_core.evolution run patches.yaml

    # Apply and write a JSON run log
    python -m patch_core.evolution run patches.yaml --log-dir logs --json
"""

import argparse
import json
import logging
import sys

from patch_core.config import Settings
from patch_core.evolution.errors import PatchError, RunFailure
from patch_core.evolution.manifest import Manifest
from patch_core.log import failure_to_dict, log_run, summary_to_dict


def _load(args) -> Manifest:
    return Manifest.load(args.manifest or args.settings.manifest)


def _initial_version(args):
    if args.initial_version is not None:
        return args.initial_version
    return args.settings.initial_version


def cmd_list(args):
    """List patches defined in a manifest."""
    manifest = _load(args)

    if not manifest.patches:
        print(f"No patches defined in {manifest.source}.")
        return 0

    print(f"Patches in {manifest.source}:")
    print("-" * 40)

    for entry in manifest.patches:
        flags = "reversible" if entry.rollback else "irreversible"
        print(f"  v{entry.version} ({flags})")
        if entry.dependencies:
            print(f"    depends on: {', '.join(f'v{d}' for d in entry.dependencies)}")
        if entry.description:
            print(f"    {entry.description[:60]}")
    return 0


def cmd_plan(args):
    """Dry-run: show which patches would be applied."""
    orchestrator = _load(args).build(_initial_version(args))
    plan = orchestrator.plan()

    if args.json:
        print(json.dumps(summary_to_dict(plan), indent=2))
        return 0

    if plan.empty and not plan.skipped:
        print(f"Nothing to apply. Current version: v{plan.baseline_version}")
        return 0

    print(f"[DRY RUN] From v{plan.baseline_version}:")
    for version in plan.applied:
        print(f"  apply v{version}")
    for version in plan.skipped:
        deps = sorted(orchestrator.registry.dependencies_of(version))
        print(f"  skip  v{version} (needs {', '.join(f'v{d}' for d in deps)} in the same run)")
    print(f"Would finish at v{plan.final_version}")
    return 0


def cmd_run(args):
    """Apply pending patches."""
    manifest = _load(args)
    orchestrator = manifest.build(_initial_version(args))
    log_dir = args.log_dir or args.settings.log_dir

    try:
        summary = orchestrator.run()
    except RunFailure as failure:
        data = failure_to_dict(failure)
        if log_dir:
            data["log_path"] = log_run(manifest.name, data, log_dir)

        if args.json:
            print(json.dumps(data, indent=2))
            return 1

        print(f"Failed at v{failure.version}: {failure.error}")
        print(f"Rolled back to v{failure.baseline_version}:")
        for attempt in failure.rollbacks:
            if not attempt.performed:
                status = "no rollback operation"
            elif attempt.error:
                status = f"FAILED: {attempt.error.error}"
            else:
                status = "ok"
            print(f"  - v{attempt.version}: {status}")
        return 1

    data = summary_to_dict(summary)
    if log_dir:
        data["log_path"] = log_run(manifest.name, data, log_dir)

    if args.json:
        print(json.dumps(data, indent=2))
        return 0

    if summary.empty:
        print(f"Nothing applied. Current version: v{summary.final_version}")
    else:
        print(f"Applied: {', '.join(f'v{v}' for v in summary.applied)}")
        print(f"Current version: v{summary.final_version}")
    if summary.skipped:
        print(f"Skipped (unmet dependencies): {', '.join(f'v{v}' for v in summary.skipped)}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="python -m patch_core.evolution",
        description="Versioned patch orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  list      List patches defined in a manifest
  plan      Show which patches a run would apply
  run       Apply pending patches, rolling back on failure

Examples:
  python -m patch_core.evolution plan patches.yaml
  python -m patch_core.evolution run patches.yaml --initial-version 3
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    def add_common(sub):
        sub.add_argument(
            "manifest",
            nargs="?",
            help="Manifest path (default: $PATCH_CORE_MANIFEST or patches.yaml)",
        )

    # list command
    list_parser = subparsers.add_parser("list", help="List patches")
    add_common(list_parser)
    list_parser.set_defaults(func=cmd_list)

    # plan command
    plan_parser = subparsers.add_parser("plan", help="Dry-run")
    add_common(plan_parser)
    plan_parser.add_argument("--initial-version", type=int, help="Starting version")
    plan_parser.add_argument("--json", action="store_true", help="Print JSON")
    plan_parser.set_defaults(func=cmd_plan)

    # run command
    run_parser = subparsers.add_parser("run", help="Apply patches")
    add_common(run_parser)
    run_parser.add_argument("--initial-version", type=int, help="Starting version")
    run_parser.add_argument("--json", action="store_true", help="Print JSON")
    run_parser.add_argument("--log-dir", help="Write a JSON run log under this directory")
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        args.settings = Settings.discover()
        logging.basicConfig(
            level=getattr(logging, args.settings.log_level, logging.INFO),
            format="%(levelname)s %(name)s: %(message)s",
        )
        return args.func(args)
    except (PatchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
