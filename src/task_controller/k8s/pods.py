"""Lookups into pod manifests."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any


def find_container(pod: dict[str, Any], name: str) -> tuple[int, dict[str, Any]] | None:
    containers = pod.get("spec", {}).get("containers") or []
    for index, container in enumerate(containers):
        if container.get("name") == name:
            return index, container
    return None


def find_container_status(pod: dict[str, Any], name: str) -> dict[str, Any] | None:
    statuses = pod.get("status", {}).get("containerStatuses") or []
    return next((status for status in statuses if status.get("name") == name), None)


def find_any_container_status(
    pod: dict[str, Any], names: Sequence[str]
) -> dict[str, Any] | None:
    """Return the status of the first of ``names`` present in the pod."""
    for name in names:
        status = find_container_status(pod, name)
        if status is not None:
            return status
    return None


def terminated_state(status: dict[str, Any]) -> dict[str, Any] | None:
    return (status.get("state") or {}).get("terminated")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp such as ``2024-01-01T00:00:00Z``."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
