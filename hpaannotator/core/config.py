"""Configuration helpers for hpa-annotator.

This module loads optional YAML configuration files to customize runtime
behaviour such as worker count and retry backoff.  Configuration precedence:

1. Environment variable ``HPAANNOTATOR_CONFIG`` pointing to a YAML file.
2. ``hpaannotator.yaml`` in the current working directory.
3. Built-in defaults bundled with the package (``config/default.yaml``).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from hpaannotator.config.policy import (
    DEFAULT_BASE_DELAY,
    DEFAULT_BURST,
    DEFAULT_MAX_DELAY,
    DEFAULT_QPS,
    DEFAULT_WORKER_LOOP_PERIOD,
    DEFAULT_WORKERS,
    MAX_RETRIES,
)

__all__ = [
    "ControllerConfig",
    "get_controller_config",
    "load_controller_config",
    "reset_controller_config",
]


_ENV_VAR = "HPAANNOTATOR_CONFIG"
_CWD_FILENAME = "hpaannotator.yaml"


@dataclass
class ControllerConfig:
    workers: int = DEFAULT_WORKERS
    max_retries: int = MAX_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    qps: float = DEFAULT_QPS
    burst: int = DEFAULT_BURST
    worker_loop_period: float = DEFAULT_WORKER_LOOP_PERIOD
    cache_sync_timeout: Optional[float] = None
    resync_period: float = 0.0
    namespace: Optional[str] = None

    def validate(self) -> "ControllerConfig":
        if self.workers < 1:
            raise ValueError(f"'workers' must be >= 1, got {self.workers}")
        if self.max_retries < 0:
            raise ValueError(f"'max_retries' must be >= 0, got {self.max_retries}")
        if self.base_delay <= 0 or self.max_delay < self.base_delay:
            raise ValueError(
                f"Invalid backoff window: base_delay={self.base_delay}, max_delay={self.max_delay}"
            )
        if self.qps <= 0 or self.burst < 1:
            raise ValueError(f"Invalid token bucket: qps={self.qps}, burst={self.burst}")
        if self.worker_loop_period < 0:
            raise ValueError("'worker_loop_period' must be non-negative")
        if self.cache_sync_timeout is not None and self.cache_sync_timeout <= 0:
            raise ValueError("'cache_sync_timeout' must be positive or null")
        if self.resync_period < 0:
            raise ValueError("'resync_period' must be non-negative")
        return self


_controller_config: Optional[ControllerConfig] = None

_INT_FIELDS = {"workers", "max_retries", "burst"}
_FLOAT_FIELDS = {"base_delay", "max_delay", "qps", "worker_loop_period", "resync_period"}


def _resolve_config_path(explicit: Optional[str | Path] = None) -> Optional[Path]:
    if explicit is not None:
        candidate = Path(explicit).expanduser()
        if not candidate.is_file():
            raise FileNotFoundError(f"Config file not found: {candidate}")
        return candidate

    env_path = os.environ.get(_ENV_VAR)
    if env_path:
        candidate = Path(env_path).expanduser()
        if candidate.is_file():
            return candidate

    cwd_file = Path.cwd() / _CWD_FILENAME
    if cwd_file.is_file():
        return cwd_file
    return None


def _load_yaml_dict(path: Optional[Path]) -> Dict[str, Any]:
    if path is not None:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}

    # Fallback to bundled default configuration
    from importlib import resources

    text = resources.files("hpaannotator.config").joinpath("default.yaml").read_text(encoding="utf-8")
    return yaml.safe_load(text) or {}


def _coerce_field(name: str, value: Any) -> Any:
    try:
        if name in _INT_FIELDS:
            if isinstance(value, bool):
                raise TypeError("boolean is not an integer")
            return int(value)
        if name in _FLOAT_FIELDS:
            return float(value)
        if name == "cache_sync_timeout":
            return None if value is None else float(value)
        if name == "namespace":
            if value is None:
                return None
            text = str(value).strip()
            return text or None
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid value for controller.{name}: {value!r}") from exc
    return value


def _build_controller_config(data: Dict[str, Any]) -> ControllerConfig:
    node = data.get("controller", {})
    if node is None:
        node = {}
    if not isinstance(node, dict):
        raise ValueError("'controller' section must be a mapping")

    known = {f.name for f in fields(ControllerConfig)}
    unknown = sorted(set(node) - known)
    if unknown:
        raise ValueError(f"Unknown controller option(s): {', '.join(unknown)}")

    kwargs = {name: _coerce_field(name, value) for name, value in node.items()}
    return ControllerConfig(**kwargs).validate()


def load_controller_config(path: Optional[str | Path] = None) -> ControllerConfig:
    """
    加载控制器配置，不影响进程级缓存。

    Args:
        path: 配置文件路径；为空时依次尝试 ``$HPAANNOTATOR_CONFIG``、
            当前目录的 ``hpaannotator.yaml`` 和包内默认配置

    Returns:
        校验通过的 :class:`ControllerConfig`
    """
    return _build_controller_config(_load_yaml_dict(_resolve_config_path(path)))


def get_controller_config() -> ControllerConfig:
    global _controller_config
    if _controller_config is None:
        _controller_config = load_controller_config()
    return _controller_config


def reset_controller_config() -> None:
    """Reset cached controller configuration (intended for tests)."""
    global _controller_config
    _controller_config = None
