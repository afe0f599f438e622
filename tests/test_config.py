"""Tests for loading and validating the scaffold config."""

import os
from pathlib import Path

import pytest

from terrascaffold_lib.config import (
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

FULL_CONFIG = """\
subscriptions:
  - name: payments
    resources:
      - name: db
        exclude-from:
          environments: [prod]
          regions: [EU-WEST]
      - name: cache
  - name: identity
environments: [dev, prod]
regions: [eu-west, us-east]
"""


def _write(tmp_path: Path, text: str, name: str = "config.yml") -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_load_full_config(tmp_path):
    config = load_config(_write(tmp_path, FULL_CONFIG))

    assert config == Configuration(
        subscriptions=(
            Subscription(
                name="payments",
                resources=(
                    Resource("db", ExclusionRule(environments=("prod",), regions=("EU-WEST",))),
                    Resource("cache", ExclusionRule()),
                ),
            ),
            Subscription(name="identity", resources=()),
        ),
        environments=("dev", "prod"),
        regions=("eu-west", "us-east"),
    )


def test_optional_fields_default_to_empty():
    config = parse_config(
        {
            "subscriptions": [{"name": "s", "resources": [{"name": "r", "exclude-from": None}]}],
            "environments": ["dev"],
            "regions": ["eu"],
        }
    )
    assert config.subscriptions[0].resources[0].exclude_from == ExclusionRule((), ())


def test_exclude_from_with_only_regions():
    config = parse_config(
        {
            "subscriptions": [{"name": "s", "resources": [{"name": "r", "exclude-from": {"regions": ["us"]}}]}],
            "environments": [],
            "regions": [],
        }
    )
    rule = config.subscriptions[0].resources[0].exclude_from
    assert rule.environments == ()
    assert rule.regions == ("us",)


def test_numeric_names_become_strings():
    config = parse_config({"subscriptions": [{"name": 2024}], "environments": [1], "regions": ["eu"]})
    assert config.subscriptions[0].name == "2024"
    assert config.environments == ("1",)


def test_configuration_is_immutable(tmp_path):
    config = load_config(_write(tmp_path, FULL_CONFIG))
    with pytest.raises(AttributeError):
        config.regions = ("elsewhere",)  # type: ignore[misc]
    assert isinstance(config.subscriptions, tuple)


def test_missing_file_raises_read_error(tmp_path):
    missing = str(tmp_path / "nope.yml")
    with pytest.raises(ReadError, match="failed to read file") as excinfo:
        load_config(missing)
    assert excinfo.value.path == missing


def test_directory_path_raises_read_error(tmp_path):
    with pytest.raises(ReadError):
        load_config(str(tmp_path))


def test_default_path_is_config_yml(tmp_path, monkeypatch):
    _write(tmp_path, FULL_CONFIG)
    monkeypatch.chdir(tmp_path)
    assert load_config().environments == ("dev", "prod")


def test_invalid_yaml_raises_parse_error(tmp_path):
    path = _write(tmp_path, "subscriptions: [unclosed\n")
    with pytest.raises(ParseError, match="failed to parse YAML"):
        load_config(path)


def test_errors_share_base_class(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yml"))
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, "- just\n- a list\n"))


@pytest.mark.parametrize(
    "text, location",
    [
        ("environments: [dev]\nregions: [eu]\n", "'subscriptions'"),
        ("subscriptions: []\nregions: [eu]\n", "'environments'"),
        ("subscriptions: []\nenvironments: [dev]\n", "'regions'"),
        ("subscriptions:\n  - resources: []\nenvironments: [dev]\nregions: [eu]\n", "subscriptions[0].name"),
        (
            "subscriptions:\n  - name: s\n    resources:\n      - exclude-from: {}\nenvironments: []\nregions: []\n",
            "subscriptions[0].resources[0].name",
        ),
        ("subscriptions: payments\nenvironments: [dev]\nregions: [eu]\n", "subscriptions must be a list"),
        ("subscriptions: []\nenvironments: dev\nregions: [eu]\n", "environments must be a list"),
        ("subscriptions: [payments]\nenvironments: []\nregions: []\n", "subscriptions[0] must be a mapping"),
        ("subscriptions: []\nenvironments: []\nregions: [no]\n", "regions[0] must be a string"),
        ("subscriptions:\n  - name: ''\nenvironments: []\nregions: []\n", "must not be empty"),
        (
            "subscriptions:\n  - name: s\n    resources:\n      - name: r\n        exclude-from: [prod]\n"
            "environments: []\nregions: []\n",
            "subscriptions[0].resources[0].exclude-from must be a mapping",
        ),
    ],
)
def test_schema_errors_name_the_field(tmp_path, text, location):
    with pytest.raises(ParseError) as excinfo:
        load_config(_write(tmp_path, text))
    assert location in str(excinfo.value)


def test_parse_error_creates_nothing(tmp_path):
    path = _write(tmp_path, "subscriptions:\n  - resources: []\nenvironments: [dev]\nregions: [eu]\n")
    with pytest.raises(ParseError):
        load_config(path)
    assert os.listdir(tmp_path) == ["config.yml"]


def test_undecodable_contents_raise_parse_error(tmp_path):
    path = tmp_path / "config.yml"
    path.write_bytes(b"subscriptions: []\nenvironments: [\xff\xfe]\nregions: []\n")
    with pytest.raises(ParseError, match="failed to parse YAML"):
        load_config(str(path))


def test_float_names_are_rejected():
    # 1.10 would otherwise come back as "1.1"
    with pytest.raises(ParseError, match=r"regions\[0\] must be a string, got float"):
        parse_config({"subscriptions": [], "environments": [], "regions": [1.10]})
