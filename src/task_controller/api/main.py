"""FastAPI app entrypoint: task desire endpoints and the pod admission webhook."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, ValidationError

from task_controller.config.settings import Settings, get_settings
from task_controller.k8s.errors import JobConflictError, KubernetesError
from task_controller.k8s.kubectl import Kubectl, KubectlJobClient
from task_controller.tasks.desirer import JobCardinalityError, TaskDesirer
from task_controller.tasks.models import StagingTask, Task
from task_controller.webhook.admission import AdmissionRequest
from task_controller.webhook.injector import InstanceIndexEnvInjector

logger = logging.getLogger(__name__)


class DesireResponse(BaseModel):
    guid: str
    job_name: str


def build_desirer(settings: Settings) -> TaskDesirer:
    kubectl = Kubectl(
        binary=settings.kubectl_binary,
        kubeconfig_path=settings.kubeconfig_path,
        timeout_s=settings.kubectl_timeout_s,
    )
    return TaskDesirer(
        namespace=settings.namespace,
        job_client=KubectlJobClient(kubectl, settings.namespace),
        tls_config=settings.staging_tls_config,
        service_account_name=settings.service_account_name,
        registry_secret_name=settings.registry_secret_name,
    )


def create_app(
    *,
    settings_override: Settings | None = None,
    desirer: TaskDesirer | None = None,
    injector: InstanceIndexEnvInjector | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.desirer = desirer or build_desirer(settings)
    app.state.injector = injector or InstanceIndexEnvInjector()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.post("/mutate-pods")
    def mutate_pods(review: dict[str, Any], request: Request) -> dict[str, Any]:
        try:
            admission_request = AdmissionRequest.model_validate(review.get("request") or {})
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail="Malformed AdmissionReview") from exc
        response = request.app.state.injector.handle(admission_request)
        return response.to_review()

    @app.post("/tasks", response_model=DesireResponse, status_code=202)
    def desire_task(task: Task, request: Request) -> DesireResponse:
        job = _desire(lambda: request.app.state.desirer.desire(task), guid=task.guid)
        return DesireResponse(guid=task.guid, job_name=_job_name(job))

    @app.post("/staging", response_model=DesireResponse, status_code=202)
    def desire_staging(staging_task: StagingTask, request: Request) -> DesireResponse:
        guid = staging_task.task.guid
        job = _desire(lambda: request.app.state.desirer.desire_staging(staging_task), guid=guid)
        return DesireResponse(guid=guid, job_name=_job_name(job))

    @app.delete("/staging/{guid}", response_model=DesireResponse)
    def delete_staging(guid: str, request: Request) -> DesireResponse:
        try:
            name = request.app.state.desirer.delete(guid)
        except JobCardinalityError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        except KubernetesError as exc:
            logger.error("delete_staging event=failed guid=%s reason=%s", guid, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return DesireResponse(guid=guid, job_name=name)

    return app


def _desire(call: Callable[[], dict[str, Any]], *, guid: str) -> dict[str, Any]:
    try:
        return call()
    except JobConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except KubernetesError as exc:
        logger.error("desire event=failed guid=%s reason=%s", guid, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


def _job_name(job: dict[str, Any]) -> str:
    return (job or {}).get("metadata", {}).get("name", "")


app = create_app()
