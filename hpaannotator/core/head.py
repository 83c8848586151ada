"""
hpa-annotator head-node helper.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import ray

from hpaannotator.core.actors import ActorConfig, ApiServerActor
from hpaannotator.core.cache import SharedInformer
from hpaannotator.core.client import RayApiClient
from hpaannotator.core.config import ControllerConfig, get_controller_config
from hpaannotator.core.controllers import AnnotationController
from hpaannotator.core.utils import ErrorSink

logger = logging.getLogger(__name__)


class AnnotatorHead:
    """Convenience wrapper wiring the API server actor, the informer and the controller."""

    def __init__(
        self,
        name: str = "hpa-annotator-apiserver",
        *,
        config: Optional[ControllerConfig] = None,
        error_sink: Optional[ErrorSink] = None,
        max_events: int = 1000,
    ):
        """
        Args:
            name: API server actor 的逻辑名称
            config: 控制器配置，默认读取全局配置
            error_sink: 错误上报对象，默认新建一个
            max_events: actor 事件日志保留的事件数，超出后旧 watch 会收到 410
        """
        self.name = name
        self.config = config or get_controller_config()
        self.error_sink = error_sink or ErrorSink()
        self._max_events = max_events
        self._actor: Optional[ray.actor.ActorHandle] = None
        self.client: Optional[RayApiClient] = None
        self.informer: Optional[SharedInformer] = None
        self.controller: Optional[AnnotationController] = None
        self._stop_event = threading.Event()
        self._controller_thread: Optional[threading.Thread] = None
        self._informer_thread: Optional[threading.Thread] = None
        self.controller_error: Optional[BaseException] = None

    def start(self) -> bool:
        if self._actor is not None:
            return True

        self._stop_event = threading.Event()
        self.controller_error = None
        self._actor = ApiServerActor.remote(ActorConfig(name=self.name, max_events=self._max_events))
        ray.get(self._actor.health_check.remote())
        self.client = RayApiClient(self._actor)

        self.informer = SharedInformer(
            self.client,
            error_sink=self.error_sink,
            namespace=self.config.namespace,
            resync_period=self.config.resync_period,
        )
        self.controller = AnnotationController(
            self.informer, self.client, error_sink=self.error_sink, config=self.config
        )
        self._informer_thread = self.informer.start(self._stop_event)
        self._controller_thread = threading.Thread(
            target=self._run_controller, name="annotation-controller", daemon=True
        )
        self._controller_thread.start()
        logger.info("hpa-annotator started (%s, workers=%d)", self.name, self.config.workers)
        return True

    def _run_controller(self) -> None:
        try:
            self.controller.start(self._stop_event)
        except Exception as exc:  # pragma: no cover - defensive
            self.controller_error = exc
            logger.error("Annotation controller exited with error: %s", exc)
            self._stop_event.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the controller exits; ``True`` if it did within ``timeout``."""
        if self._controller_thread is None:
            return True
        self._controller_thread.join(timeout)
        return not self._controller_thread.is_alive()

    def stop(self) -> bool:
        self._stop_event.set()
        if self._controller_thread is not None:
            self._controller_thread.join(timeout=10.0)
            self._controller_thread = None
        if self._informer_thread is not None:
            self._informer_thread.join(timeout=5.0)
            self._informer_thread = None
        if self._actor:
            ray.kill(self._actor, no_restart=True)
            self._actor = None
            logger.info("hpa-annotator stopped (%s)", self.name)
        return True
