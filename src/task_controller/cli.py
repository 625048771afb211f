"""Command line entrypoint: run the webhook/API server or the reconcile loop."""

from __future__ import annotations

import argparse
import logging
import signal
from collections.abc import Sequence

from task_controller.config.settings import Settings, get_settings
from task_controller.k8s.clients import JobClient, PodClient
from task_controller.k8s.kubectl import Kubectl, KubectlJobClient, KubectlPodClient
from task_controller.reconciler.loop import ReconcileLoop, source_type_selectors
from task_controller.reconciler.reconciler import TaskReconciler
from task_controller.reconciler.reporter import CallbackReporter
from task_controller.tasks.desirer import GuidJobDeleter, TaskDesirer

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="task-controller",
        description="Desire, reconcile and admit task workloads on Kubernetes.",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve = subcommands.add_parser("serve", help="Run the task API and admission webhook.")
    serve.add_argument("--host", default=None, help="Bind address (default from settings).")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default from settings).")

    reconcile = subcommands.add_parser("reconcile", help="Run the task completion reconciler.")
    reconcile.add_argument(
        "--once",
        action="store_true",
        help="Run a single reconcile pass and exit.",
    )
    return parser.parse_args(argv)


def build_reconcile_loop(
    settings: Settings,
    *,
    pods: PodClient | None = None,
    job_client: JobClient | None = None,
) -> ReconcileLoop:
    kubectl = Kubectl(
        binary=settings.kubectl_binary,
        kubeconfig_path=settings.kubeconfig_path,
        timeout_s=settings.kubectl_timeout_s,
    )
    if pods is None:
        pods = KubectlPodClient(kubectl, settings.namespace)
    if job_client is None:
        job_client = KubectlJobClient(kubectl, settings.namespace)
    desirer = TaskDesirer(
        namespace=settings.namespace,
        job_client=job_client,
        tls_config=settings.staging_tls_config,
        service_account_name=settings.service_account_name,
        registry_secret_name=settings.registry_secret_name,
    )
    reconciler = TaskReconciler(
        pods=pods,
        jobs=desirer,
        reporter=CallbackReporter(
            timeout_s=settings.callback_timeout_s,
            task_container_names=settings.task_container_names,
        ),
        deleter=GuidJobDeleter(job_client),
        callback_retry_limit=settings.callback_retry_limit,
        ttl_seconds=settings.completion_ttl_s,
        task_container_names=settings.task_container_names,
    )
    return ReconcileLoop(
        reconciler=reconciler,
        pods=pods,
        namespace=settings.namespace,
        workers=settings.reconcile_workers,
        interval_s=settings.reconcile_interval_s,
        selectors=source_type_selectors(settings.reconcile_source_types),
    )


def _serve(settings: Settings, args: argparse.Namespace) -> None:
    import uvicorn

    from task_controller.api.main import create_app

    ssl_options: dict[str, str] = {}
    if settings.tls_cert_path and settings.tls_key_path:
        ssl_options = {
            "ssl_certfile": settings.tls_cert_path,
            "ssl_keyfile": settings.tls_key_path,
        }
    uvicorn.run(
        create_app(settings_override=settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
        **ssl_options,
    )


def _reconcile(settings: Settings, args: argparse.Namespace) -> None:
    loop = build_reconcile_loop(settings)
    if args.once:
        summary = loop.run_once()
        logger.info(
            "reconcile_loop event=pass_done seen=%d reconciled=%d failed=%d requeued=%d",
            summary.seen,
            summary.reconciled,
            summary.failed,
            summary.requeued,
        )
        return

    def _request_stop(signum: int, _frame: object) -> None:
        logger.info("reconcile_loop event=signal signal=%s", signal.Signals(signum).name)
        loop.stop()

    signal.signal(signal.SIGTERM, _request_stop)
    signal.signal(signal.SIGINT, _request_stop)
    loop.run_forever()


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if args.command == "serve":
        _serve(settings, args)
    else:
        _reconcile(settings, args)


if __name__ == "__main__":
    main()
