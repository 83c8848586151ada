"""
Metric specification variants carried by a scaling policy.

A metric is either a :class:`ResourceMetricSource` (targets a well-known
resource kind such as ``cpu`` or ``memory``) or an :class:`OtherMetricSource`
holding any other kind verbatim.  Callers match on the variant with
``isinstance``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from hpaannotator.config.policy import MetricSourceType, MetricTargetType


@dataclass
class MetricTarget:
    """Target value for a metric; exactly which field is meaningful depends on ``type``."""

    type: str = MetricTargetType.UTILIZATION.value
    average_utilization: Optional[int] = None
    average_value: Optional[str] = None
    value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type}
        if self.average_utilization is not None:
            data["averageUtilization"] = self.average_utilization
        if self.average_value is not None:
            data["averageValue"] = self.average_value
        if self.value is not None:
            data["value"] = self.value
        return data

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]]) -> "MetricTarget":
        values = values or {}
        raw_utilization = values.get("averageUtilization")
        utilization: Optional[int] = None
        if raw_utilization is not None:
            if isinstance(raw_utilization, bool) or float(raw_utilization) != int(raw_utilization):
                raise ValueError(f"averageUtilization must be an integer, got {raw_utilization!r}")
            utilization = int(raw_utilization)
        average_value = values.get("averageValue")
        value = values.get("value")
        return cls(
            type=str(values.get("type", MetricTargetType.UTILIZATION.value)),
            average_utilization=utilization,
            average_value=None if average_value is None else str(average_value),
            value=None if value is None else str(value),
        )


@dataclass
class ResourceMetricSource:
    """A metric targeting a resource kind (``cpu``, ``memory``, ...)."""

    name: str
    target: MetricTarget = field(default_factory=MetricTarget)

    type = MetricSourceType.RESOURCE.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "resource": {"name": self.name, "target": self.target.to_dict()},
        }


@dataclass
class OtherMetricSource:
    """Any non-``Resource`` metric; the payload is kept as-is."""

    type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = copy.deepcopy(self.payload)
        data["type"] = self.type
        return data


MetricSpec = Union[ResourceMetricSource, OtherMetricSource]


def metric_from_dict(values: Dict[str, Any]) -> MetricSpec:
    """
    从字典创建 metric 规格

    Args:
        values: ``{"type": "Resource", "resource": {"name": ..., "target": {...}}}``
            或其它类型的 metric 字典

    Returns:
        ResourceMetricSource 或 OtherMetricSource

    Raises:
        ValueError: 如果字典结构无效
    """
    if not isinstance(values, dict):
        raise ValueError(f"Metric spec must be a mapping, got {type(values).__name__}")

    metric_type = str(values.get("type", "")).strip()
    if not metric_type:
        raise ValueError("Metric spec requires a non-empty 'type'")

    if metric_type != MetricSourceType.RESOURCE.value:
        payload = {k: copy.deepcopy(v) for k, v in values.items() if k != "type"}
        return OtherMetricSource(type=metric_type, payload=payload)

    resource = values.get("resource")
    if not isinstance(resource, dict):
        raise ValueError("Resource metric requires a 'resource' mapping")
    name = str(resource.get("name", "")).strip()
    if not name:
        raise ValueError("Resource metric requires a non-empty 'resource.name'")
    try:
        target = MetricTarget.from_dict(resource.get("target"))
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid target for resource metric '{name}': {e}") from e
    return ResourceMetricSource(name=name, target=target)
