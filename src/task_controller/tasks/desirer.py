"""Compile tasks into ``batch/v1`` Job manifests and manage their lifetime."""

from __future__ import annotations

import logging
from typing import Any

from task_controller.k8s import constants as k8s
from task_controller.k8s.clients import JobClient
from task_controller.tasks.models import StagingConfigTLS, StagingTask, Task

logger = logging.getLogger(__name__)

ACTIVE_DEADLINE_SECONDS = 900
RUN_AS_USER = 2000


class JobCardinalityError(RuntimeError):
    """A GUID does not map to exactly one Job."""

    def __init__(self, guid: str, count: int) -> None:
        super().__init__(f"job with guid {guid} should have 1 instance, but it has: {count}")
        self.guid = guid
        self.count = count


class TaskDesirer:
    """Translate ``Task`` / ``StagingTask`` into Jobs through a ``JobClient``."""

    def __init__(
        self,
        *,
        namespace: str,
        job_client: JobClient,
        tls_config: list[StagingConfigTLS] | None = None,
        service_account_name: str = "",
        registry_secret_name: str = "",
    ) -> None:
        self.namespace = namespace
        self.job_client = job_client
        self.tls_config = list(tls_config or [])
        self.service_account_name = service_account_name
        self.registry_secret_name = registry_secret_name

    def desire(self, task: Task) -> dict[str, Any]:
        job = self.build_task_job(task)
        logger.info("desire_task event=create guid=%s prefix=%s", task.guid, _name_prefix(task))
        return self.job_client.create(job)

    def desire_staging(self, staging_task: StagingTask) -> dict[str, Any]:
        job = self.build_staging_job(staging_task)
        logger.info(
            "desire_staging event=create guid=%s prefix=%s",
            staging_task.task.guid,
            _name_prefix(staging_task.task),
        )
        return self.job_client.create(job)

    def delete(self, guid: str) -> str:
        return _delete_single_job(self.job_client, k8s.LABEL_STAGING_GUID, guid)

    def get_by_guid(self, guid: str) -> list[dict[str, Any]]:
        return self.job_client.list(f"{k8s.LABEL_GUID}={guid}")

    def build_task_job(self, task: Task) -> dict[str, Any]:
        container = _container(task, k8s.OPI_TASK_CONTAINER_NAME, task.image)
        container["command"] = list(task.command)

        job = self._general_job(task)
        job["metadata"]["labels"][k8s.LABEL_SOURCE_TYPE] = k8s.SOURCE_TYPE_TASK
        job["spec"]["template"]["metadata"]["labels"][k8s.LABEL_SOURCE_TYPE] = (
            k8s.SOURCE_TYPE_TASK
        )
        job["spec"]["template"]["spec"]["containers"] = [container]
        return job

    def build_staging_job(self, staging_task: StagingTask) -> dict[str, Any]:
        task = staging_task.task

        downloader = _container(
            task,
            k8s.DOWNLOADER_CONTAINER_NAME,
            staging_task.downloader_image or task.image,
        )
        downloader["volumeMounts"] = [
            _mount(k8s.RECIPE_BUILDPACKS_NAME, k8s.RECIPE_BUILDPACKS_DIR),
            _mount(k8s.CERTS_VOLUME_NAME, k8s.CERTS_MOUNT_PATH, read_only=True),
            _mount(k8s.RECIPE_WORKSPACE_NAME, k8s.RECIPE_WORKSPACE_DIR),
            _mount(k8s.BUILDPACK_CACHE_NAME, k8s.BUILDPACK_CACHE_DIR),
        ]

        executor = _container(
            task,
            k8s.EXECUTOR_CONTAINER_NAME,
            staging_task.executor_image or task.image,
        )
        executor["volumeMounts"] = [
            *(dict(mount) for mount in downloader["volumeMounts"]),
            _mount(k8s.RECIPE_OUTPUT_NAME, k8s.RECIPE_OUTPUT_LOCATION),
        ]
        executor["resources"] = {
            "requests": {
                "cpu": f"{task.cpu_weight * 10}m",
                "memory": f"{task.memory_mb}M",
                "ephemeral-storage": f"{task.disk_mb}M",
            }
        }

        uploader = _container(
            task,
            k8s.UPLOADER_CONTAINER_NAME,
            staging_task.uploader_image or task.image,
        )
        uploader["volumeMounts"] = [
            _mount(k8s.CERTS_VOLUME_NAME, k8s.CERTS_MOUNT_PATH, read_only=True),
            _mount(k8s.RECIPE_OUTPUT_NAME, k8s.RECIPE_OUTPUT_LOCATION),
            _mount(k8s.BUILDPACK_CACHE_NAME, k8s.BUILDPACK_CACHE_DIR),
        ]

        job = self._general_job(task)
        staging_labels = {
            k8s.LABEL_SOURCE_TYPE: k8s.SOURCE_TYPE_STAGING,
            k8s.LABEL_STAGING_GUID: task.guid,
        }
        job["metadata"]["labels"].update(staging_labels)
        job["spec"]["template"]["metadata"]["labels"].update(staging_labels)

        pod_spec = job["spec"]["template"]["spec"]
        pod_spec["initContainers"] = [downloader, executor]
        pod_spec["containers"] = [uploader]
        pod_spec["volumes"] = [
            self._certs_volume(),
            {"name": k8s.RECIPE_OUTPUT_NAME, "emptyDir": {}},
            {"name": k8s.RECIPE_BUILDPACKS_NAME, "emptyDir": {}},
            {"name": k8s.RECIPE_WORKSPACE_NAME, "emptyDir": {}},
            {"name": k8s.BUILDPACK_CACHE_NAME, "emptyDir": {}},
        ]
        return job

    def _general_job(self, task: Task) -> dict[str, Any]:
        """Naming, metadata and security posture shared by both task shapes."""
        labels = {
            k8s.LABEL_APP_GUID: task.app_guid,
            k8s.LABEL_GUID: task_label_guid(task),
        }
        annotations = {
            k8s.ANNOTATION_APP_NAME: task.app_name,
            k8s.ANNOTATION_APP_ID: task.app_guid,
            k8s.ANNOTATION_ORG_NAME: task.org_name,
            k8s.ANNOTATION_ORG_GUID: task.org_guid,
            k8s.ANNOTATION_SPACE_NAME: task.space_name,
            k8s.ANNOTATION_SPACE_GUID: task.space_guid,
        }
        pod_spec: dict[str, Any] = {
            "restartPolicy": "Never",
            "automountServiceAccountToken": False,
            "serviceAccountName": self.service_account_name,
            "securityContext": {"runAsNonRoot": True, "runAsUser": RUN_AS_USER},
            "containers": [],
        }
        if self.registry_secret_name:
            pod_spec["imagePullSecrets"] = [{"name": self.registry_secret_name}]

        return {
            "apiVersion": "batch/v1",
            "kind": "Job",
            "metadata": {
                "generateName": _name_prefix(task),
                "namespace": self.namespace,
                "labels": dict(labels),
                "annotations": dict(annotations),
            },
            "spec": {
                "activeDeadlineSeconds": ACTIVE_DEADLINE_SECONDS,
                "template": {
                    "metadata": {"labels": dict(labels), "annotations": dict(annotations)},
                    "spec": pod_spec,
                },
            },
        }

    def _certs_volume(self) -> dict[str, Any]:
        sources = [
            {
                "secret": {
                    "name": tls.secret_name,
                    "items": [{"key": kp.key, "path": kp.path} for kp in tls.key_paths],
                }
            }
            for tls in self.tls_config
        ]
        return {"name": k8s.CERTS_VOLUME_NAME, "projected": {"sources": sources}}


class GuidJobDeleter:
    """Delete the one Job whose guid label matches, whatever its task shape."""

    def __init__(self, job_client: JobClient) -> None:
        self.job_client = job_client

    def delete(self, guid: str) -> str:
        return _delete_single_job(self.job_client, k8s.LABEL_GUID, guid)


def task_label_guid(task: Task) -> str:
    """Value of the guid label; tasks without an app id fall back to their own GUID."""
    return task.env.get(k8s.ENV_APP_ID) or task.guid


def _delete_single_job(job_client: JobClient, label: str, guid: str) -> str:
    jobs = job_client.list(f"{label}={guid}")
    if len(jobs) != 1:
        raise JobCardinalityError(guid, len(jobs))

    name = jobs[0].get("metadata", {}).get("name", "")
    job_client.delete(name)
    logger.info("delete_task event=deleted guid=%s label=%s job=%s", guid, label, name)
    return name


def _name_prefix(task: Task) -> str:
    if task.app_name and task.space_name:
        return f"{task.app_name}-{task.space_name}-"
    return f"{task.guid}-"


def _container(task: Task, name: str, image: str) -> dict[str, Any]:
    return {
        "name": name,
        "image": image,
        "imagePullPolicy": "Always",
        "env": _task_env(task),
    }


def _task_env(task: Task) -> list[dict[str, Any]]:
    env: list[dict[str, Any]] = [
        {"name": name, "value": value} for name, value in sorted(task.env.items())
    ]
    env.extend(
        [
            _field_ref_env(k8s.ENV_POD_NAME, "metadata.name"),
            _field_ref_env(k8s.ENV_CF_INSTANCE_IP, "status.podIP"),
            _field_ref_env(k8s.ENV_CF_INSTANCE_INTERNAL_IP, "status.podIP"),
            {"name": k8s.ENV_CF_INSTANCE_ADDR, "value": ""},
            {"name": k8s.ENV_CF_INSTANCE_PORT, "value": ""},
            {"name": k8s.ENV_CF_INSTANCE_PORTS, "value": "[]"},
        ]
    )
    return env


def _field_ref_env(name: str, field_path: str) -> dict[str, Any]:
    return {"name": name, "valueFrom": {"fieldRef": {"fieldPath": field_path}}}


def _mount(name: str, mount_path: str, *, read_only: bool = False) -> dict[str, Any]:
    return {"name": name, "mountPath": mount_path, "readOnly": read_only}
