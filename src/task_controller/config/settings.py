"""Application settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from task_controller.k8s import constants as k8s
from task_controller.tasks.models import StagingConfigTLS


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "task-controller"
    namespace: str = "cf-workloads"
    service_account_name: str = "eirini"
    registry_secret_name: str = "registry-credentials"
    # JSON list, e.g. [{"secret_name": "ca", "key_paths": [{"key": "ca.crt", "path": "ca"}]}]
    staging_tls_config: list[StagingConfigTLS] = Field(default_factory=list)

    callback_retry_limit: int = Field(default=3, ge=0)
    completion_ttl_s: int = Field(default=5, ge=0)
    callback_timeout_s: float = Field(default=10.0, ge=0.1)

    kubectl_binary: str = "kubectl"
    kubeconfig_path: str = ""
    kubectl_timeout_s: float = Field(default=30.0, ge=1.0)

    reconcile_interval_s: float = Field(default=2.0, ge=0.1)
    reconcile_workers: int = Field(default=4, ge=1)
    # Pods are selected by source type; a task is done when one of these containers terminates.
    reconcile_source_types: list[str] = Field(
        default_factory=lambda: [k8s.SOURCE_TYPE_TASK, k8s.SOURCE_TYPE_STAGING]
    )
    task_container_names: list[str] = Field(
        default_factory=lambda: list(k8s.TASK_CONTAINER_NAMES)
    )

    host: str = "0.0.0.0"
    port: int = Field(default=8443, ge=1, le=65535)
    tls_cert_path: str = ""
    tls_key_path: str = ""
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TASK_CONTROLLER_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
