"""Task completion reconciler, its callback reporter and polling driver."""

from task_controller.reconciler.loop import LoopPassSummary, ReconcileLoop
from task_controller.reconciler.reconciler import (
    ReconcileRequest,
    ReconcileResult,
    TaskReconciler,
)
from task_controller.reconciler.reporter import CallbackError, CallbackReporter
from task_controller.reconciler.tracker import CallbackTracker

__all__ = [
    "CallbackError",
    "CallbackReporter",
    "CallbackTracker",
    "LoopPassSummary",
    "ReconcileLoop",
    "ReconcileRequest",
    "ReconcileResult",
    "TaskReconciler",
]
