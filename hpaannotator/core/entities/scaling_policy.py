"""
Scaling-policy resource definitions.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .metric import MetricSpec, metric_from_dict


@dataclass
class ObjectMeta:
    name: str
    namespace: str = "default"
    annotations: Optional[Dict[str, str]] = None
    labels: Dict[str, str] = field(default_factory=dict)
    resource_version: str = ""
    uid: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "labels": dict(self.labels),
            "resourceVersion": self.resource_version,
            "uid": self.uid,
        }
        if self.annotations is not None:
            data["annotations"] = dict(self.annotations)
        return data

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "ObjectMeta":
        name = str(values.get("name", "")).strip()
        if not name:
            raise ValueError("metadata.name is required")
        annotations = values.get("annotations")
        if annotations is not None:
            if not isinstance(annotations, dict):
                raise ValueError("metadata.annotations must be a mapping")
            annotations = {str(k): str(v) for k, v in annotations.items()}
        namespace = values.get("namespace")
        return cls(
            name=name,
            namespace="default" if namespace is None else str(namespace),
            annotations=annotations,
            labels={str(k): str(v) for k, v in (values.get("labels") or {}).items()},
            resource_version=str(values.get("resourceVersion", "") or ""),
            uid=str(values.get("uid", "") or ""),
        )


@dataclass
class ScaleTargetRef:
    kind: str = "Deployment"
    name: str = ""
    api_version: str = "apps/v1"

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind, "name": self.name, "apiVersion": self.api_version}


@dataclass
class ScalingPolicySpec:
    scale_target_ref: ScaleTargetRef = field(default_factory=ScaleTargetRef)
    min_replicas: Optional[int] = 1
    max_replicas: int = 1
    metrics: List[MetricSpec] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "scaleTargetRef": self.scale_target_ref.to_dict(),
            "maxReplicas": self.max_replicas,
            "metrics": [metric.to_dict() for metric in self.metrics],
        }
        if self.min_replicas is not None:
            data["minReplicas"] = self.min_replicas
        return data


@dataclass
class ScalingPolicy:
    """A HorizontalPodAutoscaler-shaped resource watched by the controller."""

    metadata: ObjectMeta
    spec: ScalingPolicySpec = field(default_factory=ScalingPolicySpec)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str:
        return self.metadata.namespace

    @property
    def annotations(self) -> Optional[Dict[str, str]]:
        return self.metadata.annotations

    def deep_copy(self) -> "ScalingPolicy":
        """Return an independent clone; callers mutate the clone, never the cached object."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "apiVersion": "autoscaling/v2",
            "kind": "HorizontalPodAutoscaler",
            "metadata": self.metadata.to_dict(),
            "spec": self.spec.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScalingPolicy":
        """
        从字典创建 ScalingPolicy 对象

        Raises:
            ValueError: 如果 metadata 或 metrics 无效
        """
        if not isinstance(data, dict):
            raise ValueError(f"Scaling policy must be a mapping, got {type(data).__name__}")
        metadata = ObjectMeta.from_dict(data.get("metadata") or {})
        raw_spec = data.get("spec") or {}
        raw_ref = raw_spec.get("scaleTargetRef") or {}
        try:
            metrics = [metric_from_dict(item) for item in raw_spec.get("metrics") or []]
            min_replicas = raw_spec.get("minReplicas", 1)
            spec = ScalingPolicySpec(
                scale_target_ref=ScaleTargetRef(
                    kind=str(raw_ref.get("kind", "Deployment")),
                    name=str(raw_ref.get("name", "")),
                    api_version=str(raw_ref.get("apiVersion", "apps/v1")),
                ),
                min_replicas=None if min_replicas is None else int(min_replicas),
                max_replicas=int(raw_spec.get("maxReplicas", 1)),
                metrics=metrics,
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid spec for {metadata.namespace}/{metadata.name}: {e}") from e
        return cls(metadata=metadata, spec=spec)
