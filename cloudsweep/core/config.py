"""
Configuration Module
====================

Loads and validates the per-resource-type name rules used to narrow the
deletion set.

The rule file is YAML. Each top-level key names a resource type and may
carry ``include`` and ``exclude`` blocks of regular expressions matched
against the resource's ``Name`` tag::

    EBSVolume:
      include:
        names_regex:
          - ^ci-
      exclude:
        names_regex:
          - -keep$
    EBSSnapshot:
      exclude:
        names_regex:
          - ^golden-

Functions
---------
should_include
    Decide whether a name passes an include/exclude pattern pair.
load_config
    Read and validate a rule file.

Example
-------
>>> from cloudsweep.core.config import load_config
>>>
>>> config = load_config("rules.yaml")
>>> rule = config.rule_for("EBSVolume")
>>> rule.matches("ci-build-42")
True
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Sequence, Tuple, Union

import yaml

from cloudsweep.core.exceptions import ConfigError

# Module logger
logger = logging.getLogger(__name__)

# Top-level keys accepted in the rule file
RESOURCE_CONFIG_KEYS = ("EBSVolume", "EBSSnapshot")

RULE_BLOCKS = ("include", "exclude")
RULE_FIELDS = ("names_regex",)


def _matches_any(name: str, patterns: Sequence[Pattern[str]]) -> bool:
    return any(pattern.search(name) for pattern in patterns)


def should_include(
    name: str,
    include_patterns: Sequence[Pattern[str]],
    exclude_patterns: Sequence[Pattern[str]],
) -> bool:
    """
    Decide whether a resource name passes the include/exclude rules.

    A name passes when it matches at least one include pattern (or there
    are none) and matches no exclude pattern (or there are none). Patterns
    are searched, not anchored.

    Parameters
    ----------
    name : str
        Resource display name, empty string when untagged.
    include_patterns : sequence of compiled patterns
        Names must match one of these, if any are given.
    exclude_patterns : sequence of compiled patterns
        Names must match none of these.

    Returns
    -------
    bool
        True if the name is eligible.

    Examples
    --------
    >>> should_include("ci-42", [re.compile("^ci-")], [])
    True
    >>> should_include("ci-42-keep", [re.compile("^ci-")], [re.compile("keep")])
    False
    >>> should_include("", [], [])
    True
    """
    if not include_patterns and not exclude_patterns:
        return True
    if _matches_any(name, exclude_patterns):
        return False
    if not include_patterns:
        return True
    return _matches_any(name, include_patterns)


@dataclass(frozen=True)
class ResourceTypeRule:
    """
    Name rules for one resource type.

    Parameters
    ----------
    include_names : tuple of compiled patterns
        Include-name patterns.
    exclude_names : tuple of compiled patterns
        Exclude-name patterns.
    """

    include_names: Tuple[Pattern[str], ...] = ()
    exclude_names: Tuple[Pattern[str], ...] = ()

    def matches(self, name: str) -> bool:
        """Return True if ``name`` passes this rule."""
        return should_include(name, self.include_names, self.exclude_names)

    @property
    def is_empty(self) -> bool:
        """True when the rule places no restriction on names."""
        return not self.include_names and not self.exclude_names


EMPTY_RULE = ResourceTypeRule()


@dataclass
class Config:
    """
    Validated rule set for a run.

    Resource types without an entry get :data:`EMPTY_RULE`, so a default
    ``Config()`` includes every name.

    Parameters
    ----------
    rules : dict
        Mapping of resource config key (e.g. 'EBSVolume') to its rule.
    source : str, optional
        Where the configuration was loaded from, for log messages.
    """

    rules: Dict[str, ResourceTypeRule] = field(default_factory=dict)
    source: Optional[str] = None

    def rule_for(self, config_key: str) -> ResourceTypeRule:
        """Get the rule for a resource type, or the empty rule."""
        return self.rules.get(config_key, EMPTY_RULE)

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        source: Optional[str] = None,
    ) -> Config:
        """
        Build a Config from parsed YAML data.

        Raises
        ------
        ConfigError
            If a key is unknown, a value has the wrong shape, or a pattern
            is not a valid regular expression.
        """
        if data is None:
            return cls(source=source)
        if not isinstance(data, dict):
            raise ConfigError(
                "Configuration must be a mapping of resource types",
                details={"source": source, "got": type(data).__name__},
            )

        rules: Dict[str, ResourceTypeRule] = {}
        for key, body in data.items():
            if key not in RESOURCE_CONFIG_KEYS:
                raise ConfigError(
                    f"Unknown resource type in configuration: {key}",
                    details={"source": source, "valid": list(RESOURCE_CONFIG_KEYS)},
                )
            rules[key] = _parse_rule(key, body, source)

        logger.debug(f"Loaded name rules for {sorted(rules)} from {source}")
        return cls(rules=rules, source=source)


def _parse_rule(key: str, body: Any, source: Optional[str]) -> ResourceTypeRule:
    if body is None:
        return EMPTY_RULE
    if not isinstance(body, dict):
        raise ConfigError(
            f"'{key}' must be a mapping",
            details={"source": source, "path": key},
        )

    unknown = set(body) - set(RULE_BLOCKS)
    if unknown:
        raise ConfigError(
            f"Unknown keys under '{key}': {sorted(unknown)}",
            details={"source": source, "path": key},
        )

    patterns = {
        block: _parse_block(f"{key}.{block}", body.get(block), source)
        for block in RULE_BLOCKS
    }
    return ResourceTypeRule(
        include_names=patterns["include"],
        exclude_names=patterns["exclude"],
    )


def _parse_block(
    path: str,
    block: Any,
    source: Optional[str],
) -> Tuple[Pattern[str], ...]:
    if block is None:
        return ()
    if not isinstance(block, dict):
        raise ConfigError(
            f"'{path}' must be a mapping",
            details={"source": source, "path": path},
        )

    unknown = set(block) - set(RULE_FIELDS)
    if unknown:
        raise ConfigError(
            f"Unknown keys under '{path}': {sorted(unknown)}",
            details={"source": source, "path": path},
        )

    expressions = block.get("names_regex") or []
    if not isinstance(expressions, list):
        raise ConfigError(
            f"'{path}.names_regex' must be a list",
            details={"source": source, "path": f"{path}.names_regex"},
        )

    compiled: List[Pattern[str]] = []
    for index, expression in enumerate(expressions):
        item_path = f"{path}.names_regex[{index}]"
        if not isinstance(expression, str):
            raise ConfigError(
                f"'{item_path}' must be a string",
                details={"source": source, "path": item_path},
            )
        try:
            compiled.append(re.compile(expression))
        except re.error as e:
            raise ConfigError(
                f"Invalid regular expression at '{item_path}': {e}",
                details={"source": source, "path": item_path},
            ) from e
    return tuple(compiled)


def load_config(path: Union[str, Path]) -> Config:
    """
    Read and validate a YAML rule file.

    Parameters
    ----------
    path : str or Path
        Path to the YAML file.

    Returns
    -------
    Config
        The validated configuration. An empty file yields an empty Config.

    Raises
    ------
    ConfigError
        If the file is missing, is not valid YAML, or fails validation.
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"source": str(config_path)},
        ) from e
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Error parsing YAML file {config_path}: {e}",
            details={"source": str(config_path)},
        ) from e

    config = Config.from_dict(data, source=str(config_path))
    logger.info(f"Successfully loaded name rules from {config_path}")
    return config
