"""
CLI argument handling (no Ray runtime needed).
"""

from __future__ import annotations

from hpaannotator.cli import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.workers is None
    assert args.namespace is None
    assert args.log_level == "INFO"


def test_parser_overrides():
    args = build_parser().parse_args(["--workers", "3", "--namespace", "prod", "--log-level", "DEBUG"])
    assert args.workers == 3
    assert args.namespace == "prod"
    assert args.log_level == "DEBUG"


def test_invalid_worker_count_exits_before_start():
    assert main(["--workers", "0"]) == 2


def test_missing_config_file_exits_before_start(tmp_path):
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 2
