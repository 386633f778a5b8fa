"""Run configuration schema and loader.

A ``PipelineConfig`` is built once per run (from command-line options,
optionally layered over a YAML/JSON file) and handed to each pipeline
component's constructor.
"""

import fnmatch
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from dirdigest.errors import ConfigError
from dirdigest.utils.hashing import DEFAULT_ALGORITHM, validate_algorithm

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 10
DEFAULT_PATTERN = "*"


class PipelineConfig(BaseModel):
    """Settings shared by discovery, the worker pool and the sink.

    Attributes:
        directory: Root of the tree to walk.
        pattern: Glob (default) or regex matched against each file's base name.
        regex: Interpret ``pattern`` as a regular expression (unanchored search).
        output: Path of the tabular artifact to write.
        workers: Number of parallel digest workers.
        algorithm: hashlib algorithm with a fixed-length digest.
        path_buffer: Capacity of the path stream (0 = unbuffered handoff).
        result_buffer: Capacity of the result stream (0 = unbuffered handoff).
        timeout: Optional run timeout in seconds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    directory: Path = Field(default=Path("."), description="Root directory to walk")
    pattern: str = Field(default=DEFAULT_PATTERN, description="Base-name pattern")
    regex: bool = Field(default=False, description="Treat pattern as a regular expression")
    output: Path = Field(..., description="Output file path")
    workers: int = Field(default=DEFAULT_WORKERS, ge=1, description="Parallel digest workers")
    algorithm: str = Field(default=DEFAULT_ALGORITHM, description="hashlib algorithm name")
    path_buffer: int = Field(default=0, ge=0, description="Path stream capacity")
    result_buffer: int = Field(default=0, ge=0, description="Result stream capacity")
    timeout: Optional[float] = Field(default=None, gt=0, description="Run timeout in seconds")

    @field_validator("directory", mode="before")
    @classmethod
    def default_directory(cls, v: Any) -> Any:
        """An empty directory means the current directory."""
        if v is None or v == "":
            return Path(".")
        return v

    @field_validator("pattern", mode="before")
    @classmethod
    def default_pattern(cls, v: Any) -> Any:
        """An empty pattern means match-all."""
        if v is None or v == "":
            return DEFAULT_PATTERN
        return v

    @field_validator("output", mode="before")
    @classmethod
    def require_output(cls, v: Any) -> Any:
        if v is None or str(v).strip() == "":
            raise ValueError("output path is required")
        return v

    @field_validator("algorithm")
    @classmethod
    def check_algorithm(cls, v: str) -> str:
        try:
            return validate_algorithm(v)
        except ConfigError as e:
            raise ValueError(e.message)

    @model_validator(mode="after")
    def check_regex(self) -> "PipelineConfig":
        """Validate that a regex pattern compiles."""
        if self.regex:
            try:
                re.compile(self.pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex pattern '{self.pattern}': {e}")
        return self

    def matcher(self) -> Callable[[str], bool]:
        """Return a predicate over a file's base name."""
        if self.regex:
            compiled = re.compile(self.pattern)
            return lambda name: compiled.search(name) is not None
        pattern = self.pattern
        return lambda name: fnmatch.fnmatchcase(name, pattern)


def load_config(config_path: Optional[Path]) -> Dict[str, Any]:
    """Load configuration values from a YAML (or JSON) file.

    Args:
        config_path: Path to the file, or None for no file.

    Returns:
        Mapping of PipelineConfig field names to values; empty if no file.

    Raises:
        ConfigError: If the file is missing, unparsable, or not a mapping.
    """
    if config_path is None:
        return {}

    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}", path=str(config_path))

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {config_path}: {e}", path=str(config_path))

    if data is None:
        logger.warning(f"Empty configuration file at {config_path}")
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping", path=str(config_path))

    logger.debug(f"Loaded configuration from {config_path}: {sorted(data)}")
    return data


def build_config(file_values: Dict[str, Any], overrides: Dict[str, Any]) -> PipelineConfig:
    """Merge file values with explicit overrides and validate.

    ``None`` overrides are ignored so that unset command-line options fall
    back to the file, then to the model defaults.

    Raises:
        ConfigError: If the merged values fail validation.
    """
    merged = dict(file_values)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return PipelineConfig.model_validate(merged)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}", original_error=e)
