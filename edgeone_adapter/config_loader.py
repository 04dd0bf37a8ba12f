"""Configuration loading from an optional YAML file and the environment.

Environment variables always win over the file:

- ``API_KEYS`` (comma-separated) or ``API_KEY``: client keys for ``/v1/*``
- ``EDGEONE_UPSTREAM_URL``: upstream chat endpoint
- ``EDGEONE_HOST`` / ``EDGEONE_PORT``: bind address for ``proxy.py``
- ``EDGEONE_REQUEST_TIMEOUT``: upstream timeout in seconds (<= 0 disables it)
- ``EDGEONE_FORWARD_MAPPED_MODEL``: send the mapped upstream model id
- ``EDGEONE_CONFIG``: path of the YAML file
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .core.backend import DEFAULT_TIMEOUT, DEFAULT_UPSTREAM_URL, Upstream
from .core.exceptions import ConfigurationError

logger = logging.getLogger("edgeone-adapter")

DEFAULT_CONFIG_PATH = "configs/config.yaml"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


@dataclass(frozen=True)
class AdapterSettings:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    upstream_url: str = DEFAULT_UPSTREAM_URL
    request_timeout: Optional[float] = DEFAULT_TIMEOUT
    api_keys: tuple[str, ...] = field(default_factory=tuple)
    forward_mapped_model: bool = False

    @property
    def auth_enabled(self) -> bool:
        return bool(self.api_keys)

    def build_upstream(self) -> Upstream:
        return Upstream(url=self.upstream_url, timeout=self.request_timeout)


def parse_api_keys(raw: Any) -> tuple[str, ...]:
    """Split a comma-separated key string (or a list) into trimmed, non-empty keys."""
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw if item is not None]
    else:
        items = str(raw).split(",")
    return tuple(key.strip() for key in items if key.strip())


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def _substitute_env_vars(obj: Any, env_values: Mapping[str, str]) -> Any:
    """Recursively replace ``${VAR}`` and ``$VAR`` references in config values."""
    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):

        def replace_var(match: re.Match) -> str:
            var_name = match.group(1) or match.group(2)
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                logger.warning(
                    "CONFIG ERROR: Environment variable '%s' is not set; "
                    "keeping the literal placeholder.",
                    var_name,
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    return obj


def load_config_file(path: Optional[str] = None) -> dict[str, Any]:
    """Load the optional YAML config file.

    A missing file is not an error: the adapter runs on defaults and the
    environment alone. A sibling ``.env`` file feeds variable substitution.
    """
    config_path = resolve_config_path(path or os.getenv("EDGEONE_CONFIG") or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        logger.debug("No config file at %s, using environment only", config_path)
        return {}

    logger.info("Loading configuration from %s", config_path)
    env_values = load_env_values(config_path.with_name(".env"))
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")
    return _substitute_env_vars(data, env_values)


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    value_str = str(value).strip().lower()
    if value_str in {"1", "true", "yes", "on"}:
        return True
    if value_str in {"0", "false", "no", "off"}:
        return False
    return None


def load_settings(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AdapterSettings:
    """Build the adapter settings from the config file and the environment.

    Args:
        path: Optional YAML path, overriding ``EDGEONE_CONFIG``.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    env = os.environ if environ is None else environ
    cfg = load_config_file(path)
    server_cfg = cfg.get("server") or {}
    upstream_cfg = cfg.get("upstream") or {}

    host = env.get("EDGEONE_HOST") or server_cfg.get("host") or DEFAULT_HOST
    port = _to_int(env.get("EDGEONE_PORT")) or _to_int(server_cfg.get("port")) or DEFAULT_PORT
    upstream_url = (
        env.get("EDGEONE_UPSTREAM_URL") or upstream_cfg.get("url") or DEFAULT_UPSTREAM_URL
    )

    timeout = _to_float(env.get("EDGEONE_REQUEST_TIMEOUT"))
    if timeout is None:
        timeout = _to_float(upstream_cfg.get("request_timeout"))
    if timeout is None:
        timeout = DEFAULT_TIMEOUT

    forward_mapped = _to_bool(env.get("EDGEONE_FORWARD_MAPPED_MODEL"))
    if forward_mapped is None:
        forward_mapped = _to_bool(upstream_cfg.get("forward_mapped_model")) or False

    raw_keys = env.get("API_KEYS") or env.get("API_KEY")
    if raw_keys is None:
        raw_keys = cfg.get("api_keys")
    api_keys = parse_api_keys(raw_keys)
    if not api_keys:
        logger.warning(
            "No API_KEYS configured: /v1/* endpoints accept requests without authentication!"
        )

    return AdapterSettings(
        host=str(host),
        port=port,
        upstream_url=str(upstream_url),
        request_timeout=timeout if timeout > 0 else None,
        api_keys=api_keys,
        forward_mapped_model=forward_mapped,
    )
