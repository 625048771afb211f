from __future__ import annotations

import json
import subprocess
from typing import Any

import pytest

from task_controller.k8s import kubectl as kubectl_module
from task_controller.k8s.errors import (
    JobConflictError,
    KubernetesError,
    NotFoundError,
    PodNotFoundError,
)
from task_controller.k8s.kubectl import Kubectl, KubectlJobClient, KubectlPodClient


class FakeRun:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        self.calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, self.returncode, self.stdout, self.stderr)


def _install(monkeypatch: pytest.MonkeyPatch, fake: FakeRun) -> FakeRun:
    monkeypatch.setattr(kubectl_module.subprocess, "run", fake)
    return fake


def test_job_create_pipes_manifest_on_stdin(monkeypatch: pytest.MonkeyPatch) -> None:
    created = {"metadata": {"name": "my-app-abcde"}}
    fake = _install(monkeypatch, FakeRun(stdout=json.dumps(created)))
    kubectl = Kubectl(binary="/usr/bin/kubectl", kubeconfig_path="/etc/kube.conf", timeout_s=5)
    job = {"metadata": {"generateName": "my-app-"}}

    result = KubectlJobClient(kubectl, "tests").create(job)

    assert result == created
    args, kwargs = fake.calls[0]
    assert args == [
        "/usr/bin/kubectl",
        "--kubeconfig",
        "/etc/kube.conf",
        "--namespace",
        "tests",
        "create",
        "-f",
        "-",
        "-o",
        "json",
    ]
    assert json.loads(kwargs["input"]) == job
    assert kwargs["timeout"] == 5
    assert kwargs["check"] is False


def test_job_list_returns_items(monkeypatch: pytest.MonkeyPatch) -> None:
    items = [{"metadata": {"name": "a"}}, {"metadata": {"name": "b"}}]
    fake = _install(monkeypatch, FakeRun(stdout=json.dumps({"items": items})))

    jobs = KubectlJobClient(Kubectl(), "tests").list("cloudfoundry.org/guid=g")

    assert jobs == items
    args, _ = fake.calls[0]
    assert args == [
        "kubectl",
        "--namespace",
        "tests",
        "get",
        "jobs",
        "-l",
        "cloudfoundry.org/guid=g",
        "-o",
        "json",
    ]


def test_job_list_tolerates_empty_output(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeRun(stdout=""))

    assert KubectlJobClient(Kubectl(), "tests").list("a=b") == []


def test_job_delete_uses_foreground_cascade(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _install(monkeypatch, FakeRun(stdout='job.batch "a" deleted'))

    KubectlJobClient(Kubectl(), "tests").delete("a")

    args, _ = fake.calls[0]
    assert args[-4:] == ["job", "a", "--cascade=foreground", "--wait=false"]


def test_pod_get_maps_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(
        monkeypatch,
        FakeRun(returncode=1, stderr='Error from server (NotFound): pods "p" not found'),
    )

    with pytest.raises(PodNotFoundError):
        KubectlPodClient(Kubectl(), "tests").get("other", "p")


def test_pod_get_uses_requested_namespace(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = _install(monkeypatch, FakeRun(stdout='{"metadata": {"name": "p"}}'))

    pod = KubectlPodClient(Kubectl(), "tests").get("other", "p")

    assert pod == {"metadata": {"name": "p"}}
    args, _ = fake.calls[0]
    assert args[1:3] == ["--namespace", "other"]


def test_job_delete_not_found_is_plain_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeRun(returncode=1, stderr='jobs.batch "a" not found'))

    with pytest.raises(NotFoundError) as excinfo:
        KubectlJobClient(Kubectl(), "tests").delete("a")

    assert not isinstance(excinfo.value, PodNotFoundError)


def test_create_maps_already_exists_to_conflict(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(
        monkeypatch,
        FakeRun(returncode=1, stderr='Error from server (AlreadyExists): jobs.batch "a" exists'),
    )

    with pytest.raises(JobConflictError):
        KubectlJobClient(Kubectl(), "tests").create({"metadata": {"name": "a"}})


def test_other_failures_raise_kubernetes_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeRun(returncode=1, stderr="Unable to connect to the server"))

    with pytest.raises(KubernetesError, match="Unable to connect"):
        KubectlPodClient(Kubectl(), "tests").list("a=b")


def test_invalid_json_raises_kubernetes_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(monkeypatch, FakeRun(stdout="not json"))

    with pytest.raises(KubernetesError, match="invalid JSON"):
        KubectlPodClient(Kubectl(), "tests").list("a=b")


def test_missing_binary_raises_kubernetes_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError(2, "No such file or directory", args[0])

    monkeypatch.setattr(kubectl_module.subprocess, "run", fake_run)

    with pytest.raises(KubernetesError, match="No such file"):
        KubectlJobClient(Kubectl(binary="missing-kubectl"), "tests").list("a=b")


def test_timeout_raises_kubernetes_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        raise subprocess.TimeoutExpired(args, kwargs["timeout"])

    monkeypatch.setattr(kubectl_module.subprocess, "run", fake_run)

    with pytest.raises(KubernetesError, match="timed out"):
        KubectlPodClient(Kubectl(timeout_s=1), "tests").get("tests", "p")


def test_pod_get_treats_other_missing_objects_as_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(
        monkeypatch,
        FakeRun(returncode=1, stderr='Error from server (NotFound): namespaces "gone" not found'),
    )

    with pytest.raises(KubernetesError) as excinfo:
        KubectlPodClient(Kubectl(), "tests").get("gone", "p")

    assert not isinstance(excinfo.value, NotFoundError)


def test_job_list_in_missing_namespace_is_not_not_found(monkeypatch: pytest.MonkeyPatch) -> None:
    _install(
        monkeypatch,
        FakeRun(returncode=1, stderr='Error from server (NotFound): namespaces "tests" not found'),
    )

    with pytest.raises(KubernetesError) as excinfo:
        KubectlJobClient(Kubectl(), "tests").list("a=b")

    assert not isinstance(excinfo.value, NotFoundError)
