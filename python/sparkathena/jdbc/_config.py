"""Configuration helpers for Athena JDBC options."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

DEFAULT_DRIVER_CLASS = "com.amazonaws.athena.jdbc.AthenaDriver"
DEFAULT_STAGING_BUCKET_PREFIX = "aws-athena-query-results"
DEFAULT_CREDENTIALS_PROVIDER_CLASS = "com.amazonaws.auth.InstanceProfileCredentialsProvider"
DEFAULT_INSTANCE_METADATA_REGION = True
DEFAULT_STS_TIMEOUT_SEC = 5.0

_TRUE_FLAGS = frozenset({"1", "true", "yes", "on"})
_FALSE_FLAGS = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True, slots=True)
class AthenaConfig:
    default_driver_class: str = DEFAULT_DRIVER_CLASS
    staging_bucket_prefix: str = DEFAULT_STAGING_BUCKET_PREFIX
    credentials_provider_class: str = DEFAULT_CREDENTIALS_PROVIDER_CLASS
    instance_metadata_region: bool = DEFAULT_INSTANCE_METADATA_REGION
    sts_timeout_sec: float = DEFAULT_STS_TIMEOUT_SEC


def _load_yaml_config() -> dict[str, Any]:
    """Load the first YAML configuration file that exists, if any."""

    config_env = os.environ.get("SPARKATHENA_CONFIG")
    candidate_paths: list[Path] = []
    if config_env:
        candidate_paths.append(Path(config_env).expanduser())
    candidate_paths.append(Path.home() / ".config" / "sparkathena" / "config.yaml")

    for path in candidate_paths:
        if not path.is_file():
            continue
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        if isinstance(data, dict):
            return data
    return {}


def _extract_jdbc_section(raw: dict[str, Any]) -> dict[str, Any]:
    nested = raw.get("sparkathena", {})
    candidates = [
        nested.get("jdbc", {}) if isinstance(nested, dict) else {},
        raw.get("sparkathena.jdbc", {}),
    ]
    for candidate in candidates:
        if isinstance(candidate, dict) and candidate:
            return candidate
    return {}


def _env_override(key: str) -> str | None:
    return os.environ.get(f"SPARKATHENA_JDBC_{key.upper()}")


def _parse_flag(value: Any) -> bool | None:
    """Map a yes/no style literal to a bool; None when unrecognised."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE_FLAGS:
        return True
    if lowered in _FALSE_FLAGS:
        return False
    return None


def load_config() -> AthenaConfig:
    """Load configuration from env variables or YAML."""

    yaml_config = _extract_jdbc_section(_load_yaml_config())

    def resolve_str(key: str, default: str) -> str:
        env_value = _env_override(key)
        if env_value is not None:
            return env_value
        value = yaml_config.get(key, default)
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return default

    def resolve_float(key: str, default: float) -> float:
        env_value = _env_override(key)
        if env_value is not None:
            try:
                return float(env_value)
            except ValueError:  # pragma: no cover - invalid env
                pass
        value = yaml_config.get(key, default)
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return float(value)
        except (TypeError, ValueError):  # pragma: no cover - invalid YAML value
            return default

    def resolve_bool(key: str, default: bool) -> bool:
        flag = _parse_flag(_env_override(key))
        if flag is not None:
            return flag
        value = yaml_config.get(key, default)
        if isinstance(value, bool):
            return value
        flag = _parse_flag(value)
        return default if flag is None else flag

    return AthenaConfig(
        default_driver_class=resolve_str("default_driver_class", DEFAULT_DRIVER_CLASS),
        staging_bucket_prefix=resolve_str("staging_bucket_prefix", DEFAULT_STAGING_BUCKET_PREFIX)
        or DEFAULT_STAGING_BUCKET_PREFIX,
        credentials_provider_class=resolve_str(
            "credentials_provider_class", DEFAULT_CREDENTIALS_PROVIDER_CLASS
        )
        or DEFAULT_CREDENTIALS_PROVIDER_CLASS,
        instance_metadata_region=resolve_bool("instance_metadata_region", DEFAULT_INSTANCE_METADATA_REGION),
        sts_timeout_sec=max(0.1, resolve_float("sts_timeout_sec", DEFAULT_STS_TIMEOUT_SEC)),
    )
