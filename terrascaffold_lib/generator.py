import logging
import os
import subprocess
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .config import Configuration, Resource

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "terramate"
DIR_MODE = 0o755

# (folder, tags) -> None; raises OSError, ValueError or subprocess.SubprocessError on failure
Runner = Callable[[str, str], None]


@dataclass(frozen=True)
class Target:
    """One (subscription, environment, region, resource) combination that is not excluded."""

    subscription: str
    environment: str
    region: str
    resource: str

    @property
    def relative_path(self) -> str:
        return os.path.join(self.subscription, self.environment, self.region, self.resource)

    @property
    def tags(self) -> str:
        return build_tags(self.subscription, self.resource, self.region, self.environment)


@dataclass(frozen=True)
class Failure:
    path: str
    operation: str
    message: str


@dataclass
class GenerationReport:
    provisioned: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str, str, str]] = field(default_factory=list)
    failures: List[Failure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class TerramateRunner:
    """Runs `<executable> create --tags <tags> <folder>` with output passed straight through."""

    def __init__(self, executable: str = DEFAULT_COMMAND) -> None:
        self.executable = executable

    def command(self, folder: str, tags: str) -> List[str]:
        return [self.executable, "create", "--tags", tags, folder]

    def __call__(self, folder: str, tags: str) -> None:
        logger.info("Running %s command in folder: %s with tags: %s", self.executable, folder, tags)
        # No capture: the child inherits our stdout/stderr. Blocks until it exits.
        subprocess.run(self.command(folder, tags), check=True)


def should_skip(resource: Resource, environment: str, region: str) -> bool:
    """True if the resource is excluded from this environment or this region (case-insensitive)."""
    env = environment.casefold()
    if any(env == excluded.casefold() for excluded in resource.exclude_from.environments):
        return True
    reg = region.casefold()
    return any(reg == excluded.casefold() for excluded in resource.exclude_from.regions)


def build_tags(subscription: str, resource: str, region: str, environment: str) -> str:
    # Order is consumed by the provisioning tool; keep it fixed.
    return ",".join([subscription, resource, region, environment])


def plan_tree(config: Configuration) -> List[Target]:
    """Return the non-excluded targets in walk order without touching the filesystem."""
    targets: List[Target] = []
    for sub in config.subscriptions:
        for env in config.environments:
            for region in config.regions:
                for resource in sub.resources:
                    if should_skip(resource, env, region):
                        continue
                    targets.append(Target(sub.name, env, region, resource.name))
    return targets


def _ensure_dir(path: str) -> None:
    os.makedirs(path, mode=DIR_MODE, exist_ok=True)


def _join(base_dir: Optional[str], *parts: str) -> str:
    if not base_dir or base_dir == os.curdir:
        return os.path.join(*parts)
    return os.path.join(base_dir, *parts)


def _make_folder(report: GenerationReport, kind: str, path: str) -> bool:
    try:
        _ensure_dir(path)
    except (OSError, ValueError) as e:
        logger.error("Error creating %s folder '%s': %s", kind, path, e)
        report.failures.append(Failure(path, f"create {kind} folder", str(e)))
        return False
    return True


def generate_tree(
    config: Configuration,
    base_dir: Optional[str] = None,
    runner: Optional[Runner] = None,
) -> GenerationReport:
    """
    Walk subscriptions x environments x regions x resources in config order, creating
    <subscription>/<environment>/<region>/<resource> under base_dir and running the
    provisioning command in every leaf that is not excluded.

    - Each path segment is created when its loop is entered; a segment that cannot be
      created abandons only its own subtree.
    - A command failure is logged and the walk continues with the next resource.
    - Existing directories are never an error, so re-running over a populated tree is safe.
    """
    if runner is None:
        runner = TerramateRunner()
    report = GenerationReport()

    for sub in config.subscriptions:
        sub_folder = _join(base_dir, sub.name)
        if not _make_folder(report, "subscription", sub_folder):
            continue

        for env in config.environments:
            env_folder = os.path.join(sub_folder, env)
            if not _make_folder(report, "environment", env_folder):
                continue

            for region in config.regions:
                region_folder = os.path.join(env_folder, region)
                if not _make_folder(report, "region", region_folder):
                    continue

                for resource in sub.resources:
                    if should_skip(resource, env, region):
                        logger.debug("Skipping %s in %s/%s/%s (excluded)", resource.name, sub.name, env, region)
                        report.skipped.append((sub.name, env, region, resource.name))
                        continue

                    resource_folder = os.path.join(region_folder, resource.name)
                    if not _make_folder(report, "resource", resource_folder):
                        continue

                    tags = build_tags(sub.name, resource.name, region, env)
                    try:
                        runner(resource_folder, tags)
                    except (OSError, ValueError, subprocess.SubprocessError) as e:
                        logger.error("Error running terramate command in '%s': %s", resource_folder, e)
                        report.failures.append(Failure(resource_folder, "run command", str(e)))
                        continue
                    report.provisioned.append(resource_folder)

    return report
