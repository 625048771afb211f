"""Task models and the Job desirer."""

from task_controller.tasks.desirer import GuidJobDeleter, JobCardinalityError, TaskDesirer
from task_controller.tasks.models import KeyPath, StagingConfigTLS, StagingTask, Task

__all__ = [
    "GuidJobDeleter",
    "JobCardinalityError",
    "KeyPath",
    "StagingConfigTLS",
    "StagingTask",
    "Task",
    "TaskDesirer",
]
