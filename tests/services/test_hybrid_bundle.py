import os
import subprocess

import pytest

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.services.csv_manifest import operator_image, related_image_names
from rhoaicatalog.services.hybrid_bundle import HybridBundleService, hybrid_bundle_image

CSV_CONTENT = """\
kind: ClusterServiceVersion
metadata:
  name: rhods-operator.3.3.0
  annotations:
    containerImage: registry.redhat.io/rhoai/odh-rhel9-operator@sha256:aaaa
spec:
  install:
    spec:
      deployments:
        - name: rhods-operator
          spec:
            template:
              spec:
                containers:
                  - name: rhods-operator
                    image: registry.redhat.io/rhoai/odh-rhel9-operator@sha256:aaaa
                    env:
                      - name: RELATED_IMAGE_ODH_DASHBOARD_IMAGE
                        value: registry.redhat.io/rhoai/odh-dashboard-rhel9@sha256:bbbb
"""

SOURCE = "quay.io/rhoai/odh-operator-bundle:rhoai-3.3"
OPERATOR = "quay.io/someone/rhods-operator:custom-main"


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeRunner:
    """Simulates podman create/cp/rm by writing bundle content locally."""

    def __init__(self, dry_run=False, with_csv=True, fail_copy=False):
        self.dry_run = dry_run
        self.with_csv = with_csv
        self.fail_copy = fail_copy
        self.calls = []
        self.executed = []

    def run(self, cmd, check=True, capture_output=False, cwd=None):
        self.calls.append(list(cmd))
        if cmd[1] == "create":
            return subprocess.CompletedProcess(cmd, 0, stdout="container123\n", stderr="")
        if cmd[1] == "cp":
            if self.fail_copy:
                raise CatalogBuilderError("cp failed")
            target = cmd[3]
            os.makedirs(target, exist_ok=True)
            if target.endswith("manifests") and self.with_csv:
                with open(os.path.join(target, "rhods-operator.clusterserviceversion.yaml"), "w") as handle:
                    handle.write(CSV_CONTENT)
            if target.endswith("metadata"):
                with open(os.path.join(target, "annotations.yaml"), "w") as handle:
                    handle.write("annotations: {}\n")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def execute(self, cmd, capture_output=False, cwd=None):
        self.executed.append(list(cmd))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def _service(runner, tmp_path):
    return HybridBundleService(
        runner=runner,
        logger=DummyLogger(),
        console=DummyConsole(),
        image_builder="podman",
        work_dir=str(tmp_path),
    )


def test_hybrid_bundle_image_uses_source_tag():
    assert hybrid_bundle_image(SOURCE, "quay.io/someone") == "quay.io/someone/odh-operator-bundle:hybrid-rhoai-3.3"


def test_build_dockerfile_contains_bundle_labels(tmp_path):
    dockerfile = _service(FakeRunner(), tmp_path).build_dockerfile()

    assert dockerfile.startswith("FROM scratch")
    assert "LABEL operators.operatorframework.io.bundle.mediatype.v1=registry+v1" in dockerfile
    assert "LABEL operators.operatorframework.io.bundle.package.v1=rhods-operator" in dockerfile
    assert "LABEL operators.operatorframework.io.bundle.channels.v1=alpha,stable,fast" in dockerfile
    assert "LABEL operators.operatorframework.io.bundle.channel.default.v1=stable" in dockerfile
    assert "COPY manifests /manifests/" in dockerfile
    assert "COPY metadata /metadata/" in dockerfile


def test_hybridize_patches_csv_and_builds_image(tmp_path):
    runner = FakeRunner()

    result = _service(runner, tmp_path).hybridize(SOURCE, OPERATOR, "quay.io/someone")

    assert result == "quay.io/someone/odh-operator-bundle:hybrid-rhoai-3.3"
    csv_path = tmp_path / "hybrid-bundle" / "manifests" / "rhods-operator.clusterserviceversion.yaml"
    assert operator_image(csv_path) == OPERATOR
    assert related_image_names(csv_path) == ["RELATED_IMAGE_ODH_DASHBOARD_IMAGE"]
    assert (tmp_path / "hybrid-bundle.Dockerfile").exists()

    build, push = runner.executed
    assert build[:4] == ["podman", "build", "--no-cache", "--load"]
    assert build[-3:] == ["-t", result, str(tmp_path / "hybrid-bundle")]
    assert push == ["podman", "push", result]
    assert ["podman", "rm", "container123"] in runner.calls


def test_hybridize_fails_without_csv(tmp_path):
    runner = FakeRunner(with_csv=False)

    with pytest.raises(CatalogBuilderError, match="No ClusterServiceVersion"):
        _service(runner, tmp_path).hybridize(SOURCE, OPERATOR, "quay.io/someone")

    assert runner.executed == []


def test_hybridize_removes_container_when_copy_fails(tmp_path):
    runner = FakeRunner(fail_copy=True)

    with pytest.raises(CatalogBuilderError, match="Failed to extract /manifests"):
        _service(runner, tmp_path).hybridize(SOURCE, OPERATOR, "quay.io/someone")

    assert runner.calls[-1] == ["podman", "rm", "container123"]


def test_hybridize_dry_run_touches_nothing(tmp_path):
    runner = FakeRunner(dry_run=True)

    result = _service(runner, tmp_path).hybridize(SOURCE, OPERATOR, "quay.io/someone")

    assert result.endswith(":hybrid-rhoai-3.3")
    assert runner.calls == []
    assert runner.executed == []
