"""
terrascaffold_lib: scaffold a subscription/environment/region/resource directory tree from a
YAML config and run the provisioning CLI (terramate by default) in every generated leaf.

Public API:
- load_config(path: str) -> Configuration
- parse_config(data: Any, source: str = "<config>") -> Configuration
- should_skip(resource: Resource, environment: str, region: str) -> bool
- build_tags(subscription: str, resource: str, region: str, environment: str) -> str
- plan_tree(config: Configuration) -> list[Target]
- generate_tree(config: Configuration, base_dir: str | None = None, runner=None) -> GenerationReport

The generator supports:
- Per-resource exclusion of environments and regions, matched case-insensitively.
- Idempotent directory creation: re-running over an existing tree is not an error.
- Local failure handling: a directory or command failure is logged and only that
  branch of the walk is abandoned.
"""
from .config import (
    ConfigError,
    Configuration,
    ExclusionRule,
    ParseError,
    ReadError,
    Resource,
    Subscription,
    load_config,
    parse_config,
)
from .generator import (
    Failure,
    GenerationReport,
    Target,
    TerramateRunner,
    build_tags,
    generate_tree,
    plan_tree,
    should_skip,
)

__all__ = [
    "ConfigError",
    "Configuration",
    "ExclusionRule",
    "Failure",
    "GenerationReport",
    "ParseError",
    "ReadError",
    "Resource",
    "Subscription",
    "Target",
    "TerramateRunner",
    "build_tags",
    "generate_tree",
    "load_config",
    "parse_config",
    "plan_tree",
    "should_skip",
]
