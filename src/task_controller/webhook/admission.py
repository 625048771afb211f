"""Admission review models and pod decoding."""

from __future__ import annotations

import base64
import json
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

Operation = Literal["CREATE", "UPDATE", "DELETE", "CONNECT"]


class AdmissionRequest(BaseModel):
    uid: str = ""
    operation: Operation
    namespace: str = ""
    name: str = ""
    # The raw object is kept untyped; decoding is the decoder's job.
    object: Any = None


class AdmissionStatus(BaseModel):
    code: int = 200
    reason: str = ""
    message: str = ""


class AdmissionResponse(BaseModel):
    uid: str = ""
    allowed: bool
    result: AdmissionStatus = Field(default_factory=AdmissionStatus)
    patches: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def allow(cls, reason: str) -> AdmissionResponse:
        return cls(allowed=True, result=AdmissionStatus(code=200, reason=reason))

    @classmethod
    def errored(cls, code: int, exc: Exception) -> AdmissionResponse:
        return cls(allowed=False, result=AdmissionStatus(code=code, message=str(exc)))

    @classmethod
    def patched(cls, patches: list[dict[str, Any]]) -> AdmissionResponse:
        return cls(allowed=True, result=AdmissionStatus(code=200), patches=patches)

    def to_review(self) -> dict[str, Any]:
        """Render as an ``admission.k8s.io/v1`` AdmissionReview response."""
        response: dict[str, Any] = {
            "uid": self.uid,
            "allowed": self.allowed,
            "status": self.result.model_dump(),
        }
        if self.patches:
            response["patchType"] = "JSONPatch"
            response["patch"] = base64.b64encode(json.dumps(self.patches).encode("utf-8")).decode(
                "ascii"
            )
        return {
            "apiVersion": "admission.k8s.io/v1",
            "kind": "AdmissionReview",
            "response": response,
        }


class DecodeError(ValueError):
    pass


class Decoder(Protocol):
    def decode(self, request: AdmissionRequest) -> dict[str, Any]: ...


class PodDecoder:
    """Decode the request object as a pod manifest (dict, JSON text or bytes)."""

    def decode(self, request: AdmissionRequest) -> dict[str, Any]:
        raw = request.object
        if isinstance(raw, (bytes, str)):
            if not raw:
                raise DecodeError("there is no content to decode")
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise DecodeError(f"invalid pod JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise DecodeError("there is no content to decode")
        kind = raw.get("kind")
        if kind not in (None, "Pod"):
            raise DecodeError(f"expected a Pod, got {kind}")
        return raw
