"""
Domain entities used throughout the hpa-annotator runtime.
"""

from .metric import (  # noqa: F401
    MetricSpec,
    MetricTarget,
    OtherMetricSource,
    ResourceMetricSource,
    metric_from_dict,
)
from .scaling_policy import (  # noqa: F401
    ObjectMeta,
    ScaleTargetRef,
    ScalingPolicy,
    ScalingPolicySpec,
)
from .types import EventType, WatchEvent  # noqa: F401

__all__ = [
    "EventType",
    "MetricSpec",
    "MetricTarget",
    "ObjectMeta",
    "OtherMetricSource",
    "ResourceMetricSource",
    "ScaleTargetRef",
    "ScalingPolicy",
    "ScalingPolicySpec",
    "WatchEvent",
    "metric_from_dict",
]
