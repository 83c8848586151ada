"""
Retry policy constants and annotation naming.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict


class ResourceName(str, Enum):
    """
    Well-known resource kinds a ``Resource`` metric can target.

    Using ``str`` as a mixin keeps comparisons with raw strings working and
    makes the enum JSON-serialisable.
    """

    CPU = "cpu"
    MEMORY = "memory"


class MetricSourceType(str, Enum):
    """Metric source kinds understood by the scaling-policy schema."""

    RESOURCE = "Resource"
    CONTAINER_RESOURCE = "ContainerResource"
    PODS = "Pods"
    OBJECT = "Object"
    EXTERNAL = "External"


class MetricTargetType(str, Enum):
    UTILIZATION = "Utilization"
    VALUE = "Value"
    AVERAGE_VALUE = "AverageValue"


CPU_TARGET_UTILIZATION_ANNOTATION = "cpuTargetUtilization"
MEMORY_TARGET_VALUE_ANNOTATION = "memoryTargetValue"

# Resource kind -> annotation key written by the controller.
ANNOTATION_KEYS: Dict[ResourceName, str] = {
    ResourceName.CPU: CPU_TARGET_UTILIZATION_ANNOTATION,
    ResourceName.MEMORY: MEMORY_TARGET_VALUE_ANNOTATION,
}


# Number of times a key is retried before it is dropped out of the queue.
# With the default rate limiter (5ms * 2^(retries-1)) the delays between
# successive requeues are:
#
#   5ms, 10ms, 20ms, 40ms, 80ms, 160ms, 320ms, 640ms, 1.3s, 2.6s, 5.1s,
#   10.2s, 20.4s, 41s, 82s
MAX_RETRIES = 15

DEFAULT_WORKERS = 5
DEFAULT_BASE_DELAY = 0.005
DEFAULT_MAX_DELAY = 1000.0
DEFAULT_QPS = 10.0
DEFAULT_BURST = 100
DEFAULT_WORKER_LOOP_PERIOD = 1.0


def normalize_resource_name(value: str | ResourceName | None) -> ResourceName | None:
    """
    Convert a metric's resource name into :class:`ResourceName`.

    Resource names are matched exactly (``"cpu"``, ``"memory"``); anything else,
    including extended resources such as ``"nvidia.com/gpu"``, yields ``None``.
    """
    if value is None:
        return None
    if isinstance(value, ResourceName):
        return value
    try:
        return ResourceName(value)
    except ValueError:
        return None


def annotation_key_for(value: str | ResourceName | None) -> str | None:
    """Return the annotation key written for a resource kind, if any."""
    name = normalize_resource_name(value)
    if name is None:
        return None
    return ANNOTATION_KEYS.get(name)
