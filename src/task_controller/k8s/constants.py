"""Well-known label, annotation, env and volume names shared across components."""

LABEL_APP_GUID = "cloudfoundry.org/app_guid"
LABEL_GUID = "cloudfoundry.org/guid"
LABEL_SOURCE_TYPE = "cloudfoundry.org/source_type"
LABEL_STAGING_GUID = "cloudfoundry.org/staging_guid"

ANNOTATION_APP_NAME = "cloudfoundry.org/application_name"
ANNOTATION_APP_ID = "cloudfoundry.org/application_id"
ANNOTATION_ORG_NAME = "cloudfoundry.org/org_name"
ANNOTATION_ORG_GUID = "cloudfoundry.org/org_guid"
ANNOTATION_SPACE_NAME = "cloudfoundry.org/space_name"
ANNOTATION_SPACE_GUID = "cloudfoundry.org/space_guid"

SOURCE_TYPE_TASK = "TASK"
SOURCE_TYPE_STAGING = "STG"

OPI_CONTAINER_NAME = "opi"
OPI_TASK_CONTAINER_NAME = "opi-task"
DOWNLOADER_CONTAINER_NAME = "opi-task-downloader"
EXECUTOR_CONTAINER_NAME = "opi-task-executor"
UPLOADER_CONTAINER_NAME = "opi-task-uploader"
# Containers whose termination marks a task done: plain tasks, then staging.
TASK_CONTAINER_NAMES = (OPI_TASK_CONTAINER_NAME, UPLOADER_CONTAINER_NAME)

ENV_APP_ID = "APP_ID"
ENV_STAGING_GUID = "STAGING_GUID"
ENV_DOWNLOAD_URL = "DOWNLOAD_URL"
ENV_DROPLET_UPLOAD_URL = "DROPLET_UPLOAD_URL"
ENV_COMPLETION_CALLBACK = "COMPLETION_CALLBACK"
ENV_EIRINI_ADDRESS = "EIRINI_ADDRESS"
ENV_POD_NAME = "POD_NAME"
ENV_CF_INSTANCE_INDEX = "CF_INSTANCE_INDEX"
ENV_CF_INSTANCE_IP = "CF_INSTANCE_IP"
ENV_CF_INSTANCE_INTERNAL_IP = "CF_INSTANCE_INTERNAL_IP"
ENV_CF_INSTANCE_ADDR = "CF_INSTANCE_ADDR"
ENV_CF_INSTANCE_PORT = "CF_INSTANCE_PORT"
ENV_CF_INSTANCE_PORTS = "CF_INSTANCE_PORTS"

CERTS_VOLUME_NAME = "cc-certs-volume"
CERTS_MOUNT_PATH = "/etc/config/certs"
RECIPE_OUTPUT_NAME = "staging-output"
RECIPE_OUTPUT_LOCATION = "/out"
RECIPE_BUILDPACKS_NAME = "buildpacks"
RECIPE_BUILDPACKS_DIR = "/var/lib/buildpacks"
RECIPE_WORKSPACE_NAME = "recipe-workspace"
RECIPE_WORKSPACE_DIR = "/recipe_workspace"
BUILDPACK_CACHE_NAME = "buildpack-cache"
BUILDPACK_CACHE_DIR = "/tmp"
