"""In-memory cluster clients for tests and local dry runs."""

from __future__ import annotations

import copy
import threading
import uuid
from typing import Any

from task_controller.k8s.clients import parse_label_selector
from task_controller.k8s.errors import JobConflictError, NotFoundError, PodNotFoundError


def _matches(resource: dict[str, Any], label_selector: str) -> bool:
    key, value = parse_label_selector(label_selector)
    labels = resource.get("metadata", {}).get("labels") or {}
    return labels.get(key) == value


class InMemoryJobClient:
    """Namespace-scoped Job store that fills ``generateName`` like the API server."""

    def __init__(self, namespace: str = "default") -> None:
        self.namespace = namespace
        self._jobs: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, job: dict[str, Any]) -> dict[str, Any]:
        created = copy.deepcopy(job)
        metadata = created.setdefault("metadata", {})
        name = metadata.get("name") or f"{metadata.get('generateName', '')}{uuid.uuid4().hex[:5]}"
        with self._lock:
            if name in self._jobs:
                raise JobConflictError(f'jobs.batch "{name}" already exists')
            metadata["name"] = name
            metadata.setdefault("namespace", self.namespace)
            self._jobs[name] = created
        return copy.deepcopy(created)

    def list(self, label_selector: str) -> list[dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(job) for job in self._jobs.values() if _matches(job, label_selector)
            ]

    def delete(self, name: str) -> None:
        with self._lock:
            if self._jobs.pop(name, None) is None:
                raise NotFoundError(f'jobs.batch "{name}" not found')


class InMemoryPodClient:
    """Pod store keyed by ``(namespace, name)``."""

    def __init__(self) -> None:
        self._pods: dict[tuple[str, str], dict[str, Any]] = {}

    def put(self, pod: dict[str, Any]) -> None:
        metadata = pod.get("metadata", {})
        key = (metadata.get("namespace", "default"), metadata.get("name", ""))
        self._pods[key] = copy.deepcopy(pod)

    def remove(self, namespace: str, name: str) -> None:
        self._pods.pop((namespace, name), None)

    def get(self, namespace: str, name: str) -> dict[str, Any]:
        pod = self._pods.get((namespace, name))
        if pod is None:
            raise PodNotFoundError(f'pods "{name}" not found')
        return copy.deepcopy(pod)

    def list(self, label_selector: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(pod) for pod in self._pods.values() if _matches(pod, label_selector)]
