#!/usr/bin/env python3
import argparse
import logging
import os
import sys
from typing import List

from terrascaffold_lib import ConfigError, TerramateRunner, generate_tree, load_config, plan_tree
from terrascaffold_lib.config import DEFAULT_CONFIG_PATH
from terrascaffold_lib.generator import DEFAULT_COMMAND, DIR_MODE


def _configure_logging(verbose: bool) -> None:
    # Errors from the walk go to stdout next to the provisioning tool's own output
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
        force=True,
    )


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description=(
            "Scaffold subscription/environment/region/resource folders from a YAML config "
            "and run `terramate create` in each one."
        )
    )
    parser.add_argument(
        "-c",
        "--config",
        default=os.path.join(os.getcwd(), DEFAULT_CONFIG_PATH),
        help=f"Path to the scaffold config (default: ./{DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-o",
        "--out",
        default=None,
        help="Directory to create the tree in (default: current directory)",
    )
    parser.add_argument(
        "--command",
        default=DEFAULT_COMMAND,
        help=f"Provisioning executable to invoke in each leaf folder (default: {DEFAULT_COMMAND})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the folders and tags that would be generated without creating anything",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log skipped combinations and other debug output",
    )

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    if args.dry_run:
        for target in plan_tree(config):
            path = os.path.join(args.out, target.relative_path) if args.out else target.relative_path
            print(f"{path}\t{target.tags}")
        return 0

    if args.out:
        try:
            os.makedirs(args.out, mode=DIR_MODE, exist_ok=True)
        except (OSError, ValueError) as e:
            print(f"Cannot create output directory {args.out}: {e}", file=sys.stderr)
            return 1

    report = generate_tree(config, base_dir=args.out, runner=TerramateRunner(args.command))

    # Partial failures are reported but do not change the exit code
    print(
        f"Generation completed: {len(report.provisioned)} provisioned, "
        f"{len(report.skipped)} skipped, {len(report.failures)} failed."
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
