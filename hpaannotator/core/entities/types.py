"""
Common type definitions shared by the API server, the informer and the controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from .scaling_policy import ScalingPolicy


class EventType(str, Enum):
    """Change kinds delivered by a watch."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass
class WatchEvent:
    type: EventType
    object: ScalingPolicy
    resource_version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "object": self.object.to_dict(),
            "resourceVersion": self.resource_version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatchEvent":
        return cls(
            type=EventType(data["type"]),
            object=ScalingPolicy.from_dict(data["object"]),
            resource_version=int(data.get("resourceVersion", 0)),
        )
