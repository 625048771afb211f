"""Task models shared by the desirer, HTTP API and settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Task(BaseModel):
    """A one-shot unit of work, identified by its GUID."""

    model_config = ConfigDict(frozen=True)

    guid: str = Field(min_length=1)
    app_name: str = ""
    app_guid: str = ""
    space_name: str = ""
    space_guid: str = ""
    org_name: str = ""
    org_guid: str = ""
    image: str
    # Order matters and an empty command runs the image entrypoint.
    command: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    memory_mb: int = Field(default=0, ge=0)
    cpu_weight: int = Field(default=0, ge=0)
    disk_mb: int = Field(default=0, ge=0)


class StagingTask(BaseModel):
    """Task executed as a download, execute, upload pipeline."""

    model_config = ConfigDict(frozen=True)

    task: Task
    downloader_image: str = ""
    executor_image: str = ""
    uploader_image: str = ""


class KeyPath(BaseModel):
    key: str
    path: str


class StagingConfigTLS(BaseModel):
    """Which keys of an existing secret are projected into the certs volume."""

    secret_name: str
    key_paths: list[KeyPath] = Field(default_factory=list)
