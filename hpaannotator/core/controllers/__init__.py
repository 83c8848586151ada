"""
Controllers reconciling scaling policies.
"""

from .annotation_controller import AnnotationController, derive_annotations  # noqa: F401

__all__ = ["AnnotationController", "derive_annotations"]
