"""Collaborator interfaces consumed by the desirer, reconciler and admission webhook."""

from __future__ import annotations

from typing import Any, Protocol


class JobClient(Protocol):
    def create(self, job: dict[str, Any]) -> dict[str, Any]: ...

    def list(self, label_selector: str) -> list[dict[str, Any]]: ...

    def delete(self, name: str) -> None: ...


class PodClient(Protocol):
    def get(self, namespace: str, name: str) -> dict[str, Any]: ...

    def list(self, label_selector: str) -> list[dict[str, Any]]: ...


class JobsClient(Protocol):
    def get_by_guid(self, guid: str) -> list[dict[str, Any]]: ...


class Reporter(Protocol):
    def report(self, pod: dict[str, Any]) -> None: ...


class Deleter(Protocol):
    def delete(self, guid: str) -> str: ...


def parse_label_selector(label_selector: str) -> tuple[str, str]:
    """Split a single ``key=value`` selector."""
    key, separator, value = label_selector.partition("=")
    if not separator or not key:
        raise ValueError(f"Unsupported label selector: {label_selector!r}")
    return key.strip(), value.strip()
