"""
Core package bootstrap for the hpa-annotator runtime.

Re-exports the primary controller class so callers can simply do::

    from hpaannotator.core import AnnotationController
"""

from __future__ import annotations

from hpaannotator.core.controllers.annotation_controller import AnnotationController

__all__ = ["AnnotationController"]
