"""Mutating admission hook that injects ``CF_INSTANCE_INDEX`` on pod creation."""

from __future__ import annotations

import logging
import re
from typing import Any

from task_controller.k8s import constants as k8s
from task_controller.k8s.pods import find_container
from task_controller.webhook.admission import (
    AdmissionRequest,
    AdmissionResponse,
    DecodeError,
    Decoder,
    PodDecoder,
)

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400
_INDEX_PATTERN = re.compile(r"[0-9]+")


class InstanceIndexError(ValueError):
    pass


def parse_app_index(pod_name: str) -> int:
    """Return the ordinal after the final dash of a generated pod name."""
    parts = pod_name.split("-")
    if len(parts) <= 1:
        raise InstanceIndexError(f"could not parse app name from {pod_name}")
    suffix = parts[-1]
    if not _INDEX_PATTERN.fullmatch(suffix):
        raise InstanceIndexError(f"pod {pod_name} name does not contain an index")
    return int(suffix)


class InstanceIndexEnvInjector:
    def __init__(
        self,
        decoder: Decoder | None = None,
        *,
        container_name: str = k8s.OPI_CONTAINER_NAME,
    ) -> None:
        self.decoder = decoder or PodDecoder()
        self.container_name = container_name

    def handle(self, request: AdmissionRequest) -> AdmissionResponse:
        response = self._handle(request)
        response.uid = request.uid
        return response

    def _handle(self, request: AdmissionRequest) -> AdmissionResponse:
        if request.operation != "CREATE":
            return AdmissionResponse.allow("pod was already created")

        try:
            pod = self.decoder.decode(request)
        except DecodeError as exc:
            logger.warning("admission event=no_pod_in_request uid=%s reason=%s", request.uid, exc)
            return AdmissionResponse.errored(HTTP_BAD_REQUEST, exc)

        metadata = pod.get("metadata", {})
        pod_name = metadata.get("name", "")
        try:
            patch = self.instance_index_patch(pod)
        except InstanceIndexError as exc:
            logger.warning(
                "admission event=inject_failed pod=%s namespace=%s reason=%s",
                pod_name,
                metadata.get("namespace", ""),
                exc,
            )
            return AdmissionResponse.errored(HTTP_BAD_REQUEST, exc)

        logger.debug("admission event=patched pod=%s patch=%s", pod_name, patch)
        return AdmissionResponse.patched([patch])

    def instance_index_patch(self, pod: dict[str, Any]) -> dict[str, Any]:
        pod_name = pod.get("metadata", {}).get("name", "")
        try:
            index = parse_app_index(pod_name)
        except InstanceIndexError as exc:
            raise InstanceIndexError(f"failed to parse app index: {exc}") from exc

        found = find_container(pod, self.container_name)
        if found is None:
            raise InstanceIndexError(f"no {self.container_name} container found in pod")

        position, container = found
        entry = {"name": k8s.ENV_CF_INSTANCE_INDEX, "value": str(index)}
        env = container.get("env")
        if env is None:
            return {"op": "add", "path": f"/spec/containers/{position}/env", "value": [entry]}
        return {
            "op": "add",
            "path": f"/spec/containers/{position}/env/{len(env)}",
            "value": entry,
        }
