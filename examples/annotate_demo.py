#!/usr/bin/env python3
"""
注解控制器演示

展示：
1. 新建 scaling policy 后自动写入 cpu/memory 目标注解
2. 修改 metrics 后注解随之更新
3. 后端暂时失败时按指数退避重试
4. 删除 policy 不会产生错误
"""

import time

import ray

from hpaannotator.core.config import ControllerConfig
from hpaannotator.core.entities import ScalingPolicy
from hpaannotator.core.head import AnnotatorHead
from hpaannotator.core.utils import demote_ray_logging, install_stdout_logger


def _policy(name: str, cpu: int, memory: int) -> ScalingPolicy:
    return ScalingPolicy.from_dict(
        {
            "metadata": {"name": name, "namespace": "default", "annotations": {"owner": "demo"}},
            "spec": {
                "scaleTargetRef": {"kind": "Deployment", "name": name},
                "minReplicas": 1,
                "maxReplicas": 10,
                "metrics": [
                    {"type": "Resource", "resource": {"name": "cpu", "target": {"type": "Utilization", "averageUtilization": cpu}}},
                    {"type": "Resource", "resource": {"name": "memory", "target": {"type": "Utilization", "averageUtilization": memory}}},
                ],
            },
        }
    )


def _wait_for(head: AnnotatorHead, name: str, key: str, value: str, timeout: float = 5.0) -> dict:
    deadline = time.time() + timeout
    annotations = {}
    while time.time() < deadline:
        annotations = head.client.get("default", name).annotations or {}
        if annotations.get(key) == value:
            break
        time.sleep(0.05)
    return annotations


def main():
    install_stdout_logger(include_timestamp=True)
    demote_ray_logging()
    ray.init(ignore_reinit_error=True, include_dashboard=False)

    head = AnnotatorHead("annotate-demo", config=ControllerConfig(workers=2))
    head.start()
    try:
        print("\n" + "=" * 60)
        print("示例 1: 创建 policy")
        print("=" * 60)
        head.client.create(_policy("web", cpu=80, memory=70))
        print(f"   annotations: {_wait_for(head, 'web', 'cpuTargetUtilization', '80')}")

        print("\n" + "=" * 60)
        print("示例 2: 修改 metrics")
        print("=" * 60)
        current = head.client.get("default", "web")
        current.spec.metrics[0].target.average_utilization = 60
        head.client.update("default", current)
        print(f"   annotations: {_wait_for(head, 'web', 'cpuTargetUtilization', '60')}")

        print("\n" + "=" * 60)
        print("示例 3: 后端暂时失败")
        print("=" * 60)
        ray.get(head.client.actor.inject_failures.remote("update", 5, "InternalError"))
        head.client.create(_policy("api", cpu=50, memory=40))
        print(f"   annotations: {_wait_for(head, 'api', 'cpuTargetUtilization', '50')}")

        print("\n" + "=" * 60)
        print("示例 4: 删除 policy")
        print("=" * 60)
        head.client.delete("default", "web")
        time.sleep(0.5)
        print(f"   dropped errors: {head.error_sink.snapshot()['total']}")
        print(f"   server state: {ray.get(head.client.actor.snapshot_state.remote())}")
    finally:
        head.stop()
        ray.shutdown()


if __name__ == "__main__":
    main()
