"""Cluster clients that shell out to ``kubectl`` and exchange JSON manifests."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

from task_controller.k8s.errors import (
    JobConflictError,
    KubernetesError,
    NotFoundError,
    PodNotFoundError,
)

logger = logging.getLogger(__name__)


class Kubectl:
    """Thin ``subprocess`` wrapper that returns parsed JSON output."""

    def __init__(
        self,
        *,
        binary: str = "kubectl",
        kubeconfig_path: str = "",
        timeout_s: float = 30.0,
    ) -> None:
        self.binary = binary
        self.kubeconfig_path = kubeconfig_path
        self.timeout_s = timeout_s

    def base_args(self, namespace: str | None = None) -> list[str]:
        args = [self.binary]
        if self.kubeconfig_path:
            args.extend(["--kubeconfig", self.kubeconfig_path])
        if namespace:
            args.extend(["--namespace", namespace])
        return args

    def run_json(
        self,
        command: list[str],
        *,
        namespace: str | None = None,
        stdin: str | None = None,
        resource: str = "",
        not_found: type[NotFoundError] = NotFoundError,
    ) -> dict[str, Any]:
        completed = self.run(
            [*command, "-o", "json"],
            namespace=namespace,
            stdin=stdin,
            resource=resource,
            not_found=not_found,
        )
        text = (completed.stdout or "").strip()
        if not text:
            return {}
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise KubernetesError(f"kubectl returned invalid JSON: {exc}") from exc
        return payload if isinstance(payload, dict) else {}

    def run(
        self,
        command: list[str],
        *,
        namespace: str | None = None,
        stdin: str | None = None,
        resource: str = "",
        not_found: type[NotFoundError] = NotFoundError,
    ) -> subprocess.CompletedProcess[str]:
        """Only a missing ``resource`` (e.g. ``pods "name"``) raises ``not_found``."""
        args = [*self.base_args(namespace), *command]
        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                input=stdin,
                timeout=self.timeout_s,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            raise KubernetesError(f"kubectl {' '.join(command[:2])} failed: {exc}") from exc
        if completed.returncode != 0:
            message = (completed.stderr or completed.stdout or "").strip()
            logger.warning(
                "kubectl event=failed command=%s returncode=%s message=%s",
                " ".join(command[:2]),
                completed.returncode,
                message,
            )
            raise _classify_failure(message, resource=resource, not_found=not_found)
        return completed


def _classify_failure(
    message: str, *, resource: str, not_found: type[NotFoundError]
) -> KubernetesError:
    lowered = message.lower()
    if resource and f"{resource} not found".lower() in lowered:
        return not_found(message)
    if "(alreadyexists)" in lowered or "already exists" in lowered:
        return JobConflictError(message)
    return KubernetesError(message)


class KubectlJobClient:
    """``JobClient`` for ``batch/v1`` Jobs in a single namespace."""

    def __init__(self, kubectl: Kubectl, namespace: str) -> None:
        self.kubectl = kubectl
        self.namespace = namespace

    def create(self, job: dict[str, Any]) -> dict[str, Any]:
        # `apply` rejects generateName, so Jobs are always created.
        return self.kubectl.run_json(
            ["create", "-f", "-"],
            namespace=self.namespace,
            stdin=json.dumps(job),
        )

    def list(self, label_selector: str) -> list[dict[str, Any]]:
        payload = self.kubectl.run_json(
            ["get", "jobs", "-l", label_selector],
            namespace=self.namespace,
        )
        items = payload.get("items")
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]

    def delete(self, name: str) -> None:
        self.kubectl.run(
            ["delete", "job", name, "--cascade=foreground", "--wait=false"],
            namespace=self.namespace,
            resource=f'jobs.batch "{name}"',
        )


class KubectlPodClient:
    """``PodClient`` reading pods; ``list`` is scoped to the watched namespace."""

    def __init__(self, kubectl: Kubectl, namespace: str) -> None:
        self.kubectl = kubectl
        self.namespace = namespace

    def get(self, namespace: str, name: str) -> dict[str, Any]:
        return self.kubectl.run_json(
            ["get", "pod", name],
            namespace=namespace,
            resource=f'pods "{name}"',
            not_found=PodNotFoundError,
        )

    def list(self, label_selector: str) -> list[dict[str, Any]]:
        payload = self.kubectl.run_json(
            ["get", "pods", "-l", label_selector],
            namespace=self.namespace,
        )
        items = payload.get("items")
        if not isinstance(items, list):
            return []
        return [item for item in items if isinstance(item, dict)]
