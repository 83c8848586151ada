"""
Command line entry point: ``hpa-annotator``.

Starts a local Ray runtime, the API server actor and the annotation controller,
then runs until interrupted.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from dataclasses import replace
from typing import List, Optional

from hpaannotator.core.config import load_controller_config
from hpaannotator.core.utils import configure_runtime_logging, demote_ray_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hpa-annotator",
        description="Annotate scaling policies with their cpu/memory utilization targets.",
    )
    parser.add_argument("--config", help="YAML config file (defaults to $HPAANNOTATOR_CONFIG or ./hpaannotator.yaml)")
    parser.add_argument("--workers", type=int, help="number of worker threads")
    parser.add_argument("--namespace", help="only watch this namespace")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="log level (default: INFO)",
    )
    parser.add_argument("--ray-address", default=None, help="existing Ray cluster address (default: start locally)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_runtime_logging(getattr(logging, args.log_level))
    demote_ray_logging()

    try:
        config = load_controller_config(args.config)
        overrides = {}
        if args.workers is not None:
            overrides["workers"] = args.workers
        if args.namespace:
            overrides["namespace"] = args.namespace
        config = replace(config, **overrides).validate()
    except (OSError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 2

    import ray

    from hpaannotator.core.head import AnnotatorHead

    ray.init(address=args.ray_address, ignore_reinit_error=True, logging_level=logging.WARNING)
    head = AnnotatorHead(config=config)
    stop = threading.Event()

    def _handle_signal(signum, _frame):
        logger.info("Received signal %s, stopping", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    try:
        head.start()
        while not stop.is_set() and not head.wait(timeout=0.5):
            pass
    finally:
        head.stop()
        ray.shutdown()

    if head.controller_error is not None:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
