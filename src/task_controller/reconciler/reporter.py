"""HTTP completion callback sent when a task pod terminates."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any
from urllib import error, request

from task_controller.k8s import constants as k8s
from task_controller.k8s.pods import find_any_container_status, find_container, terminated_state

logger = logging.getLogger(__name__)


class CallbackError(RuntimeError):
    """The completion callback could not be delivered."""


class CallbackReporter:
    """POST ``{task_guid, failed, failure_reason}`` to the task's callback URL."""

    def __init__(
        self,
        *,
        timeout_s: float = 10.0,
        task_container_names: Sequence[str] = k8s.TASK_CONTAINER_NAMES,
    ) -> None:
        self.timeout_s = timeout_s
        self.task_container_names = tuple(task_container_names)

    def report(self, pod: dict[str, Any]) -> None:
        pod_name = pod.get("metadata", {}).get("name", "")
        callback_url = self._callback_url(pod)
        if not callback_url:
            raise CallbackError(f"pod {pod_name} has no {k8s.ENV_COMPLETION_CALLBACK} env var")

        payload = self.build_payload(pod)
        req = request.Request(
            url=callback_url,
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with request.urlopen(req, timeout=self.timeout_s) as response:
                status = getattr(response, "status", 200)
        except error.HTTPError as exc:
            raise CallbackError(
                f"callback for task {payload['task_guid']} returned HTTP {exc.code}"
            ) from exc
        except (error.URLError, OSError) as exc:
            raise CallbackError(
                f"callback for task {payload['task_guid']} failed: {exc}"
            ) from exc

        if not 200 <= status < 300:
            raise CallbackError(f"callback for task {payload['task_guid']} returned HTTP {status}")
        logger.info(
            "report event=delivered guid=%s failed=%s url=%s",
            payload["task_guid"],
            payload["failed"],
            callback_url,
        )

    def build_payload(self, pod: dict[str, Any]) -> dict[str, Any]:
        guid = (pod.get("metadata", {}).get("labels") or {}).get(k8s.LABEL_GUID, "")
        status = find_any_container_status(pod, self.task_container_names) or {}
        terminated = terminated_state(status) or {}
        exit_code = int(terminated.get("exitCode", 0) or 0)
        failed = exit_code != 0
        failure_reason = ""
        if failed:
            failure_reason = (
                terminated.get("message")
                or terminated.get("reason")
                or f"task container exited with code {exit_code}"
            )
        return {"task_guid": guid, "failed": failed, "failure_reason": failure_reason}

    def _callback_url(self, pod: dict[str, Any]) -> str:
        for name in self.task_container_names:
            found = find_container(pod, name)
            if found is None:
                continue
            _, container = found
            for entry in container.get("env") or []:
                if entry.get("name") == k8s.ENV_COMPLETION_CALLBACK:
                    return entry.get("value") or ""
            return ""
        return ""
