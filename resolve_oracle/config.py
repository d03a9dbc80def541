"""resolve_oracle/config.py – Tuning knobs for a verification run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, List, Mapping, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass
class OracleConfig:
    """Tuning knobs for the extractor/verifier pipeline."""
    fail_fast: bool = False
    std_prefix: str = "std::"
    parameter_prefix: str = "$"
    check_declarations_only: bool = False

    def validate(self) -> List[str]:
        """Return a list of validation warnings (empty if valid)."""
        warnings: List[str] = []
        if not self.std_prefix:
            warnings.append("std_prefix must not be empty")
        if not self.parameter_prefix:
            warnings.append("parameter_prefix must not be empty")
        if self.parameter_prefix.startswith("!") or self.std_prefix.startswith("!"):
            warnings.append("prefixes starting with '!' collide with sentinel payloads")
        return warnings

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "OracleConfig":
        expected_types = {f.name: type(f.default) for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            name = key.replace("-", "_")
            if name not in expected_types:
                logger.warning("OracleConfig: ignoring unknown option %r", key)
                continue
            expected = expected_types[name]
            if not isinstance(value, expected):
                raise ValueError(
                    f"option {key!r} must be a {expected.__name__}, "
                    f"got {type(value).__name__} {value!r}"
                )
            kwargs[name] = value
        config = cls(**kwargs)
        for w in config.validate():
            logger.warning("OracleConfig: %s", w)
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "OracleConfig":
        """Load options from a YAML mapping.  An empty file gives the defaults."""
        with open(path, "r", encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ValueError(f"{path}: invalid YAML: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"{path}: expected a mapping of options, got {type(data).__name__}")
        logger.debug("loaded config from %s: %s", path, data)
        return cls.from_mapping(data)
