from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from task_controller.k8s import constants as k8s
from task_controller.k8s.memory import InMemoryJobClient
from task_controller.tasks.desirer import TaskDesirer
from task_controller.tasks.models import KeyPath, StagingConfigTLS, Task

NAMESPACE = "tests"
IMAGE = "docker.png"
TASK_GUID = "task-123"


@pytest.fixture
def task() -> Task:
    return Task(
        guid=TASK_GUID,
        image=IMAGE,
        app_name="my-app",
        app_guid="my-app-guid",
        org_name="my-org",
        org_guid="org-id",
        space_name="my-space",
        space_guid="space-id",
        command=["/lifecycle/launch"],
        env={
            k8s.ENV_DOWNLOAD_URL: "example.com/download",
            k8s.ENV_DROPLET_UPLOAD_URL: "example.com/upload",
            k8s.ENV_APP_ID: "env-app-id",
            k8s.ENV_STAGING_GUID: TASK_GUID,
            k8s.ENV_COMPLETION_CALLBACK: "example.com/call/me/maybe",
            k8s.ENV_EIRINI_ADDRESS: "http://opi.cf.internal",
        },
        memory_mb=1,
        cpu_weight=2,
        disk_mb=3,
    )


@pytest.fixture
def tls_config() -> list[StagingConfigTLS]:
    return [
        StagingConfigTLS(
            secret_name="cc-uploader-certs",
            key_paths=[
                KeyPath(key="key-to-cc-uploader-cert", path="cc-uploader-cert"),
                KeyPath(key="key-to-cc-uploader-priv-key", path="cc-uploader-key"),
            ],
        ),
        StagingConfigTLS(
            secret_name="eirini-certs",
            key_paths=[
                KeyPath(key="key-to-eirini-cert", path="eirini-cert"),
                KeyPath(key="key-to-eirini-priv-key", path="eirini-key"),
            ],
        ),
        StagingConfigTLS(
            secret_name="global-ca",
            key_paths=[KeyPath(key="key-to-ca", path="ca")],
        ),
    ]


@pytest.fixture
def job_client() -> InMemoryJobClient:
    return InMemoryJobClient(namespace=NAMESPACE)


@pytest.fixture
def desirer(job_client: InMemoryJobClient, tls_config: list[StagingConfigTLS]) -> TaskDesirer:
    return TaskDesirer(
        namespace=NAMESPACE,
        job_client=job_client,
        tls_config=tls_config,
        service_account_name="staging-service-account",
        registry_secret_name="registry-secret",
    )


@pytest.fixture
def make_pod() -> Callable[..., dict[str, Any]]:
    """Build a task pod manifest with an optional terminated task container."""

    def _make_pod(
        *,
        name: str = "my-app-my-space-abcde-xyz12",
        guid: str = "env-app-id",
        container_name: str = k8s.OPI_TASK_CONTAINER_NAME,
        terminated: bool = True,
        finished_at: str | None = "2024-01-01T00:00:00Z",
        exit_code: int = 0,
        env: list[dict[str, Any]] | None = None,
        resource_version: str = "1",
        source_type: str = k8s.SOURCE_TYPE_TASK,
    ) -> dict[str, Any]:
        state: dict[str, Any] = {"running": {"startedAt": "2024-01-01T00:00:00Z"}}
        if terminated:
            terminated_state: dict[str, Any] = {"exitCode": exit_code, "reason": "Completed"}
            if finished_at is not None:
                terminated_state["finishedAt"] = finished_at
            state = {"terminated": terminated_state}
        return {
            "apiVersion": "v1",
            "kind": "Pod",
            "metadata": {
                "name": name,
                "namespace": NAMESPACE,
                "resourceVersion": resource_version,
                "labels": {k8s.LABEL_GUID: guid, k8s.LABEL_SOURCE_TYPE: source_type},
            },
            "spec": {
                "containers": [
                    {
                        "name": container_name,
                        "image": IMAGE,
                        "env": env
                        if env is not None
                        else [
                            {
                                "name": k8s.ENV_COMPLETION_CALLBACK,
                                "value": "http://cc.example/tasks/complete",
                            }
                        ],
                    }
                ]
            },
            "status": {"containerStatuses": [{"name": container_name, "state": state}]},
        }

    return _make_pod
