"""Level-triggered completion reconciler for task pods."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from task_controller.k8s import constants as k8s
from task_controller.k8s.clients import Deleter, JobsClient, PodClient, Reporter
from task_controller.k8s.errors import NotFoundError
from task_controller.k8s.pods import find_any_container_status, parse_timestamp, terminated_state
from task_controller.reconciler.tracker import CallbackTracker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileRequest:
    namespace: str
    name: str


@dataclass(frozen=True)
class ReconcileResult:
    """``requeue_after`` is in seconds; ``None`` means no scheduled retry."""

    requeue_after: float | None = None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskReconciler:
    """Report task completion once, wait out the TTL, then delete the Job.

    Every invocation re-reads the pod, so the decision only depends on
    current cluster state plus the callback bookkeeping in ``tracker``.
    """

    def __init__(
        self,
        *,
        pods: PodClient,
        jobs: JobsClient,
        reporter: Reporter,
        deleter: Deleter,
        callback_retry_limit: int,
        ttl_seconds: int,
        tracker: CallbackTracker | None = None,
        task_container_names: Sequence[str] = k8s.TASK_CONTAINER_NAMES,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.pods = pods
        self.jobs = jobs
        self.reporter = reporter
        self.deleter = deleter
        self.callback_retry_limit = callback_retry_limit
        self.ttl_seconds = ttl_seconds
        self.tracker = tracker or CallbackTracker()
        self.task_container_names = tuple(task_container_names)
        self.clock = clock

    def reconcile(self, request: ReconcileRequest) -> ReconcileResult:
        try:
            pod = self.pods.get(request.namespace, request.name)
        except NotFoundError as exc:
            logger.info(
                "reconcile event=pod_missing namespace=%s pod=%s reason=%s",
                request.namespace,
                request.name,
                exc,
            )
            return ReconcileResult()

        if not self._task_container_has_terminated(pod):
            return ReconcileResult()

        guid = (pod.get("metadata", {}).get("labels") or {}).get(k8s.LABEL_GUID, "")
        jobs = self.jobs.get_by_guid(guid)
        if not jobs:
            logger.debug("reconcile event=no_jobs guid=%s pod=%s", guid, request.name)
            return ReconcileResult()

        with self.tracker.hold(guid):
            try:
                self._report_if_required(guid, pod)
            except Exception:
                logger.error(
                    "reconcile event=callback_failed guid=%s tries=%d",
                    guid,
                    self.tracker.retries(guid),
                )
                raise

            if not self._task_has_expired(pod):
                logger.debug("reconcile event=not_expired guid=%s", guid)
                return ReconcileResult(requeue_after=float(self.ttl_seconds))

            self.tracker.clear_retries(guid)
            name = self.deleter.delete(guid)
            self.tracker.clear_reported(guid)
            logger.info("reconcile event=deleted guid=%s job=%s", guid, name)
        return ReconcileResult()

    def _report_if_required(self, guid: str, pod: dict[str, Any]) -> None:
        if self.tracker.is_reported(guid):
            return
        if self.tracker.retries(guid) >= self.callback_retry_limit:
            return

        try:
            self.reporter.report(pod)
        except Exception:
            self.tracker.record_failure(guid)
            raise
        self.tracker.mark_reported(guid)

    def _task_container_has_terminated(self, pod: dict[str, Any]) -> bool:
        status = self._task_container_status(pod)
        return status is not None and terminated_state(status) is not None

    def _task_has_expired(self, pod: dict[str, Any]) -> bool:
        status = self._task_container_status(pod)
        if status is None:
            return False
        finished_at = parse_timestamp((terminated_state(status) or {}).get("finishedAt"))
        if finished_at is None:
            logger.info("reconcile event=no_finished_at pod=%s", _pod_name(pod))
            return False
        return finished_at < self.clock() - timedelta(seconds=self.ttl_seconds)

    def _task_container_status(self, pod: dict[str, Any]) -> dict[str, Any] | None:
        status = find_any_container_status(pod, self.task_container_names)
        if status is None:
            logger.info(
                "reconcile event=no_task_container_status pod=%s containers=%s",
                _pod_name(pod),
                ",".join(self.task_container_names),
            )
        return status


def _pod_name(pod: dict[str, Any]) -> str:
    return pod.get("metadata", {}).get("name", "")
