"""
Shared configuration dataclasses for actors.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ActorConfig:
    """Configuration for the API server actor."""

    name: str
    max_events: int = 1000
    metadata: dict[str, str] = field(default_factory=dict)
