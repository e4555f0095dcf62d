"""
Configuration Management

Loads configuration from YAML files with environment variable resolution.
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from warmpath.models.entities import ScoringWeights
from warmpath.models.linkedin import LinkedInWeights, TierThresholds


class ScoringConfig(BaseModel):
    """Composite relationship strength configuration."""
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    recency_time_constant_days: float = 180
    batch_size: int = 5


class LinkedInConfig(BaseModel):
    """LinkedIn evidence scoring configuration."""
    weights: LinkedInWeights = Field(default_factory=LinkedInWeights)
    tiers: TierThresholds = Field(default_factory=TierThresholds)
    source_prefix: str = "linkedin"
    rescore_sources: list[str] = Field(default_factory=lambda: [
        "linkedin_archive",
        "linkedin_api",
    ])
    batch_size: int = 5


class PathfindingConfig(BaseModel):
    """Warm path discovery configuration."""
    max_hops: int = Field(default=3, ge=1)
    max_paths: int = Field(default=5, ge=1)
    exploration_budget: int = Field(default=10_000, ge=1)
    min_strength: float = Field(default=0.0, ge=0.0, le=1.0)
    hop_penalty: float = Field(default=0.9, gt=0.0, le=1.0)
    default_edge_score: float = Field(default=0.5, ge=0.0, le=1.0)


class GraphConfig(BaseModel):
    """Graph statistics configuration."""
    strong_edge_threshold: float = 0.7


class OutputConfig(BaseModel):
    """Output generation configuration."""
    directory: str = "./outputs"
    formats: list[str] = Field(default_factory=lambda: ["markdown", "json"])
    timestamp_filenames: bool = True


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None


class Config(BaseModel):
    """Root configuration object."""
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    linkedin: LinkedInConfig = Field(default_factory=LinkedInConfig)
    pathfinding: PathfindingConfig = Field(default_factory=PathfindingConfig)
    graph: GraphConfig = Field(default_factory=GraphConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigError(ValueError):
    """A configuration file could not be read or failed validation."""


ENV_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _resolve_env_vars(data: Any) -> Any:
    """Recursively substitute environment references in config values.

    ``${VAR}`` and ``${VAR:-default}`` may appear anywhere in a string, for
    example ``${HOME}/warmpath/outputs``. An unset variable with no default
    is left as written.
    """
    if isinstance(data, str):
        def substitute(match: re.Match) -> str:
            name, default = match.group(1), match.group(2)
            if name in os.environ:
                return os.environ[name]
            return default if default is not None else match.group(0)

        return ENV_REFERENCE.sub(substitute, data)
    if isinstance(data, dict):
        return {key: _resolve_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_resolve_env_vars(item) for item in data]
    return data


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read one YAML config file. A missing or empty file reads as {}."""
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of sections, got {type(data).__name__}")
    return data


def _format_errors(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'config'}: {err['msg']}"
        for err in error.errors()
    )


def load_config(
    config_path: Optional[Path] = None,
    local_config_path: Optional[Path] = None,
) -> Config:
    """Load configuration, layering config.local.yaml over config.yaml.

    Both files default to the project root. Sections missing from both files
    use the model defaults. Environment references are resolved after the
    merge, so a local file can override them too.

    Raises:
        ConfigError: If a file is not valid YAML, or a value fails
            validation. The message names the file and each failing field,
            e.g. ``scoring.weights: ... Weights must sum to 1.0``.
    """
    project_root = Path(__file__).parent.parent.parent
    config_path = Path(config_path) if config_path else project_root / "config.yaml"
    local_config_path = (
        Path(local_config_path) if local_config_path else project_root / "config.local.yaml"
    )

    config_data = _deep_merge(_read_yaml(config_path), _read_yaml(local_config_path))
    config_data = _resolve_env_vars(config_data)

    try:
        return Config(**config_data)
    except ValidationError as e:
        raise ConfigError(f"{config_path}: {_format_errors(e)}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result
