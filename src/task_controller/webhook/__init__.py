"""Admission webhook for task and instance pods."""

from task_controller.webhook.admission import (
    AdmissionRequest,
    AdmissionResponse,
    AdmissionStatus,
    DecodeError,
    Decoder,
    PodDecoder,
)
from task_controller.webhook.injector import (
    InstanceIndexEnvInjector,
    InstanceIndexError,
    parse_app_index,
)

__all__ = [
    "AdmissionRequest",
    "AdmissionResponse",
    "AdmissionStatus",
    "DecodeError",
    "Decoder",
    "InstanceIndexEnvInjector",
    "InstanceIndexError",
    "PodDecoder",
    "parse_app_index",
]
