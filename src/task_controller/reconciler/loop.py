"""Polling driver that turns pod listings into reconcile requests."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from task_controller.k8s import constants as k8s
from task_controller.k8s.clients import PodClient
from task_controller.reconciler.reconciler import ReconcileRequest, TaskReconciler

logger = logging.getLogger(__name__)


def source_type_selectors(source_types: Iterable[str]) -> tuple[str, ...]:
    return tuple(f"{k8s.LABEL_SOURCE_TYPE}={source_type}" for source_type in source_types)


TASK_POD_SELECTORS = source_type_selectors((k8s.SOURCE_TYPE_TASK, k8s.SOURCE_TYPE_STAGING))


@dataclass
class _KeyState:
    resource_version: str = ""
    requeue_at: float | None = None
    failed: bool = False


@dataclass
class LoopPassSummary:
    seen: int = 0
    reconciled: int = 0
    failed: int = 0
    requeued: int = 0
    forgotten: int = 0
    errors: list[str] = field(default_factory=list)


class ReconcileLoop:
    """Dispatch a reconcile per pod when it changed, is due, or last failed.

    One pass handles each key at most once, so events for the same pod are
    serialized while distinct pods run concurrently.
    """

    def __init__(
        self,
        *,
        reconciler: TaskReconciler,
        pods: PodClient,
        namespace: str,
        workers: int = 4,
        interval_s: float = 2.0,
        selectors: tuple[str, ...] = TASK_POD_SELECTORS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.reconciler = reconciler
        self.pods = pods
        self.namespace = namespace
        self.workers = max(1, workers)
        self.interval_s = interval_s
        self.selectors = selectors
        self.monotonic = monotonic
        self._keys: dict[ReconcileRequest, _KeyState] = {}
        self._stop_requested = False

    def stop(self) -> None:
        self._stop_requested = True

    def run_forever(self) -> None:
        logger.info(
            "reconcile_loop event=start namespace=%s workers=%d interval_s=%s",
            self.namespace,
            self.workers,
            self.interval_s,
        )
        while not self._stop_requested:
            started = self.monotonic()
            try:
                self.run_once()
            except Exception as exc:  # noqa: BLE001
                logger.warning("reconcile_loop event=pass_failed reason=%s", exc)
            elapsed = self.monotonic() - started
            if elapsed < self.interval_s:
                time.sleep(self.interval_s - elapsed)
        logger.info("reconcile_loop event=stopped namespace=%s", self.namespace)

    def run_once(self) -> LoopPassSummary:
        summary = LoopPassSummary()
        current = self._list_pods()
        summary.seen = len(current)

        for key in set(self._keys) - set(current):
            del self._keys[key]
            summary.forgotten += 1

        now = self.monotonic()
        due: list[ReconcileRequest] = []
        for key, resource_version in current.items():
            state = self._keys.setdefault(key, _KeyState())
            changed = state.resource_version != resource_version
            requeue_due = state.requeue_at is not None and state.requeue_at <= now
            if changed or requeue_due or state.failed:
                state.resource_version = resource_version
                due.append(key)

        if not due:
            return summary

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {key: pool.submit(self.reconciler.reconcile, key) for key in due}

        for key, future in futures.items():
            state = self._keys[key]
            summary.reconciled += 1
            try:
                result = future.result()
            except Exception as exc:  # noqa: BLE001
                state.failed = True
                state.requeue_at = None
                summary.failed += 1
                summary.errors.append(f"{key.namespace}/{key.name}: {exc}")
                logger.warning(
                    "reconcile_loop event=reconcile_failed pod=%s/%s reason=%s",
                    key.namespace,
                    key.name,
                    exc,
                )
                continue

            state.failed = False
            if result.requeue_after is None:
                state.requeue_at = None
            else:
                state.requeue_at = now + result.requeue_after
                summary.requeued += 1
        return summary

    def _list_pods(self) -> dict[ReconcileRequest, str]:
        current: dict[ReconcileRequest, str] = {}
        for selector in self.selectors:
            for pod in self.pods.list(selector):
                metadata: dict[str, Any] = pod.get("metadata", {})
                key = ReconcileRequest(
                    namespace=metadata.get("namespace") or self.namespace,
                    name=metadata.get("name", ""),
                )
                current[key] = str(metadata.get("resourceVersion", ""))
        return current
