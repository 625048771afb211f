"""Error kinds raised by cluster collaborators."""

from __future__ import annotations


class KubernetesError(RuntimeError):
    """A cluster API call failed."""


class NotFoundError(KubernetesError):
    """The requested resource does not exist."""


class PodNotFoundError(NotFoundError):
    pass


class JobConflictError(KubernetesError):
    """A Job with the same name already exists."""
