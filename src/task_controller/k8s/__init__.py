"""Cluster collaborators: interfaces, errors and client implementations."""

from task_controller.k8s.clients import (
    Deleter,
    JobClient,
    JobsClient,
    PodClient,
    Reporter,
)
from task_controller.k8s.errors import (
    JobConflictError,
    KubernetesError,
    NotFoundError,
    PodNotFoundError,
)
from task_controller.k8s.kubectl import Kubectl, KubectlJobClient, KubectlPodClient
from task_controller.k8s.memory import InMemoryJobClient, InMemoryPodClient

__all__ = [
    "Deleter",
    "InMemoryJobClient",
    "InMemoryPodClient",
    "JobClient",
    "JobConflictError",
    "JobsClient",
    "Kubectl",
    "KubectlJobClient",
    "KubectlPodClient",
    "KubernetesError",
    "NotFoundError",
    "PodClient",
    "PodNotFoundError",
    "Reporter",
]
