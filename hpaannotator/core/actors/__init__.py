"""
Ray actors backing the annotation controller.
"""

from .api_server import ApiServerActor  # noqa: F401
from .config import ActorConfig  # noqa: F401

__all__ = ["ActorConfig", "ApiServerActor"]
