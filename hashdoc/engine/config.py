"""
HashDoc Configuration — Adapter options, optionally loaded from hashdoc.yaml.

Usage:
    from hashdoc.engine.config import AdapterConfig, load_adapter_config

hashdoc.yaml:
    redis:
      host: localhost
      port: 6379
      dbname: models
      ephemeral: false
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from hashdoc.engine.errors import HashDocConfigError

CONFIG_FILENAME = "hashdoc.yaml"


class AdapterConfig(BaseModel):
    """Options accepted when configuring a collection."""
    host: str = "localhost"
    port: int = 6379
    dbname: Optional[str] = None
    ephemeral: bool = False
    db: int = 0
    socket_timeout: Optional[float] = 5
    socket_connect_timeout: Optional[float] = 5

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {v}")
        return v

    @field_validator("dbname")
    @classmethod
    def validate_dbname(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("dbname must not be empty")
        return v

    def resolve_dbname(self, model: Any = None) -> str:
        """Explicit dbname, else the model's plural name."""
        name = self.dbname or getattr(model, "plural", None)
        if not name:
            raise HashDocConfigError(
                "no dbname configured and the model has no plural name",
                operation="configure",
            )
        return name


def build_config(options: Any = None, **overrides: Any) -> AdapterConfig:
    """Coerce a dict, an AdapterConfig or None into a validated AdapterConfig."""
    if isinstance(options, AdapterConfig):
        data = options.model_dump()
    else:
        data = dict(options or {})
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return AdapterConfig(**data)
    except ValidationError as e:
        raise HashDocConfigError(
            f"invalid adapter configuration: {e}", operation="configure"
        ) from e


def load_adapter_config(config_path: Optional[str] = None, **overrides: Any) -> AdapterConfig:
    """
    Load adapter options from YAML.

    Args:
        config_path: Path to hashdoc.yaml. Defaults to ./hashdoc.yaml.
        overrides: Values that win over the file.

    Returns:
        Validated AdapterConfig. A missing file yields the defaults.
    """
    path = Path(config_path) if config_path else Path.cwd() / CONFIG_FILENAME
    if not path.exists():
        return build_config(None, **overrides)

    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise HashDocConfigError(f"cannot parse {path}: {e}", operation="configure") from e

    if not isinstance(raw, dict):
        raise HashDocConfigError(f"{path} must contain a mapping", operation="configure")

    # Settings may sit under a "redis:" section or at the top level
    section = raw.get("redis", raw)
    if not isinstance(section, dict):
        raise HashDocConfigError(f"'redis' section in {path} must be a mapping", operation="configure")
    return build_config(section, **overrides)
