"""Utility helpers for hpa-annotator."""

from .logging import configure_runtime_logging, demote_ray_logging, install_stdout_logger  # noqa: F401
from .metrics import ControllerMetrics  # noqa: F401
from .runtime import ErrorRecord, ErrorSink  # noqa: F401

__all__ = [
    "ControllerMetrics",
    "ErrorRecord",
    "ErrorSink",
    "configure_runtime_logging",
    "demote_ray_logging",
    "install_stdout_logger",
]
