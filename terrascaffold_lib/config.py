import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

try:
    import yaml  # type: ignore
except Exception as e:  # pragma: no cover
    raise RuntimeError(
        "PyYAML is required to load the scaffold config. Please install it: pip install pyyaml"
    ) from e

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yml"


class ConfigError(Exception):
    """Base class for errors that make the configuration unusable."""


class ReadError(ConfigError):
    """Raised when the configuration file cannot be read."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"failed to read file {path}: {reason}")


class ParseError(ConfigError):
    """Raised when the document is not valid YAML or does not have the expected shape."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        super().__init__(f"failed to parse YAML {source}: {reason}")


@dataclass(frozen=True)
class ExclusionRule:
    environments: Tuple[str, ...] = ()
    regions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Resource:
    name: str
    exclude_from: ExclusionRule = field(default_factory=ExclusionRule)


@dataclass(frozen=True)
class Subscription:
    name: str
    resources: Tuple[Resource, ...] = ()


@dataclass(frozen=True)
class Configuration:
    """In-memory representation of config.yml. Never mutated after load."""

    subscriptions: Tuple[Subscription, ...]
    environments: Tuple[str, ...]
    regions: Tuple[str, ...]


def _as_scalar_string(value: Any, where: str, source: str) -> str:
    # YAML turns 2024 into an int, 1.10 into the float 1.1 and yes/no into bools; only ints survive intact
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ParseError(source, f"{where} must be a string, got {type(value).__name__}")
    return str(value)


def _as_list(value: Any, where: str, source: str, required: bool = False) -> List[Any]:
    if value is None:
        if required:
            raise ParseError(source, f"missing required field '{where}'")
        return []
    if not isinstance(value, list):
        raise ParseError(source, f"{where} must be a list, got {type(value).__name__}")
    return value


def _as_mapping(value: Any, where: str, source: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(source, f"{where} must be a mapping, got {type(value).__name__}")
    return value


def _parse_names(value: Any, where: str, source: str, required: bool = False) -> Tuple[str, ...]:
    items = _as_list(value, where, source, required=required)
    return tuple(_as_scalar_string(item, f"{where}[{i}]", source) for i, item in enumerate(items))


def _parse_name(block: Mapping[str, Any], where: str, source: str) -> str:
    if block.get("name") is None:
        raise ParseError(source, f"missing required field '{where}.name'")
    name = _as_scalar_string(block["name"], f"{where}.name", source)
    if not name.strip():
        raise ParseError(source, f"{where}.name must not be empty")
    return name


def _parse_exclusion(value: Any, where: str, source: str) -> ExclusionRule:
    if value is None:
        return ExclusionRule()
    block = _as_mapping(value, where, source)
    return ExclusionRule(
        environments=_parse_names(block.get("environments"), f"{where}.environments", source),
        regions=_parse_names(block.get("regions"), f"{where}.regions", source),
    )


def _parse_resource(value: Any, where: str, source: str) -> Resource:
    block = _as_mapping(value, where, source)
    return Resource(
        name=_parse_name(block, where, source),
        exclude_from=_parse_exclusion(block.get("exclude-from"), f"{where}.exclude-from", source),
    )


def _parse_subscription(value: Any, where: str, source: str) -> Subscription:
    block = _as_mapping(value, where, source)
    resources = _as_list(block.get("resources"), f"{where}.resources", source)
    return Subscription(
        name=_parse_name(block, where, source),
        resources=tuple(
            _parse_resource(item, f"{where}.resources[{i}]", source) for i, item in enumerate(resources)
        ),
    )


def parse_config(data: Any, source: str = "<config>") -> Configuration:
    """
    Build a Configuration from an already deserialized YAML document.

    Raises ParseError naming the dotted location of the first field that does not
    match the expected shape (e.g. subscriptions[0].resources[1].name).
    """
    doc = _as_mapping(data, "document", source)
    for key in ("subscriptions", "environments", "regions"):
        if key not in doc:
            raise ParseError(source, f"missing required field '{key}'")

    subscriptions = _as_list(doc["subscriptions"], "subscriptions", source, required=True)
    return Configuration(
        subscriptions=tuple(
            _parse_subscription(item, f"subscriptions[{i}]", source) for i, item in enumerate(subscriptions)
        ),
        environments=_parse_names(doc["environments"], "environments", source, required=True),
        regions=_parse_names(doc["regions"], "regions", source, required=True),
    )


def load_config(path: Optional[str] = None) -> Configuration:
    """
    Read and parse the YAML configuration at path (default: config.yml).

    - ReadError if the file cannot be read (missing, permissions, a directory).
    - ParseError if the contents are not valid YAML or do not match the schema.
    """
    path = path or DEFAULT_CONFIG_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ParseError(path, str(e)) from e
    except OSError as e:
        raise ReadError(path, str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ParseError(path, str(e)) from e

    config = parse_config(data, source=path)
    logger.debug(
        "Loaded %s: %d subscription(s), %d environment(s), %d region(s)",
        path,
        len(config.subscriptions),
        len(config.environments),
        len(config.regions),
    )
    return config
