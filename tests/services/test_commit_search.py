import json
import os
import subprocess

import pytest
import yaml

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.services.commit_search import (
    CommitSearchService,
    commits_match,
    normalize_version,
)
from rhoaicatalog.services.opm import OpmService

CATALOG = "quay.io/rhoai/rhoai-fbc-fragment:rhoai-3.3"
COMMIT = "0123456789abcdef0123456789abcdef01234567"


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


def _csv(image):
    return {
        "kind": "ClusterServiceVersion",
        "metadata": {"name": "rhods-operator.3.3.0"},
        "spec": {
            "install": {
                "spec": {
                    "deployments": [
                        {"spec": {"template": {"spec": {"containers": [{"image": image}]}}}}
                    ]
                }
            }
        },
    }


class FakeRunner:
    """Serves a catalog render, bundle contents and operator image labels."""

    def __init__(self, bundles, operator_images, revisions, render_rc=0):
        self.dry_run = False
        self.bundles = bundles
        self.operator_images = operator_images
        self.revisions = revisions
        self.render_rc = render_rc
        self.containers = {}
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, cwd=None):
        self.calls.append(list(cmd))
        if cmd[1] == "render":
            if self.render_rc:
                raise CatalogBuilderError("Command failed (1): opm render")
            output = "\n".join(
                json.dumps({"schema": "olm.bundle", "name": name, "image": image})
                for name, image in self.bundles
            )
            return subprocess.CompletedProcess(cmd, 0, stdout=output, stderr="")
        if cmd[1] == "create":
            container_id = f"c{len(self.containers)}"
            self.containers[container_id] = cmd[-1]
            return subprocess.CompletedProcess(cmd, 0, stdout=f"{container_id}\n", stderr="")
        if cmd[1] == "cp":
            container_id = cmd[2].split(":", 1)[0]
            target = cmd[3]
            os.makedirs(target, exist_ok=True)
            image = self.operator_images[self.containers[container_id]]
            with open(os.path.join(target, "rhods-operator.clusterserviceversion.yaml"), "w", encoding="utf-8") as file_obj:
                yaml.safe_dump(_csv(image), file_obj)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
        if cmd[1] == "inspect":
            labels = {}
            if cmd[2] in self.revisions:
                labels["org.opencontainers.image.revision"] = self.revisions[cmd[2]]
            return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps([{"Labels": labels}]), stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def execute(self, cmd, capture_output=False, cwd=None):
        return self.run(cmd, capture_output=capture_output, cwd=cwd)


def _service(runner, tmp_path):
    return CommitSearchService(
        runner=runner,
        opm_service=OpmService(runner=runner, logger=DummyLogger()),
        logger=DummyLogger(),
        console=DummyConsole(),
        image_builder="podman",
        work_dir=str(tmp_path),
    )


@pytest.mark.parametrize(
    "version,expected",
    [("v3.3", "3.3"), ("3.3", "3.3"), ("rhoai-3.3", "3.3"), ("vrhoai-3.3", "3.3")],
)
def test_normalize_version(version, expected):
    assert normalize_version(version) == expected


def test_commits_match_accepts_short_and_full_forms():
    assert commits_match(COMMIT, COMMIT[:7])
    assert commits_match(COMMIT[:7], COMMIT)
    assert not commits_match(COMMIT, "deadbeef")


def test_matching_bundles_filters_by_version_suffix(tmp_path):
    documents = [
        {"schema": "olm.bundle", "name": "rhods-operator.3.3.0", "image": "b1"},
        {"schema": "olm.bundle", "name": "rhods-operator.3.3.1", "image": "b2"},
        {"schema": "olm.bundle", "name": "rhods-operator.2.3.0", "image": "b3"},
        {"schema": "olm.channel", "name": "fast"},
    ]
    service = _service(FakeRunner([], {}, {}), tmp_path)

    assert service.matching_bundles(documents, "3.3") == [
        ("rhods-operator.3.3.0", "b1"),
        ("rhods-operator.3.3.1", "b2"),
    ]


def test_search_finds_commit_by_short_sha(tmp_path):
    runner = FakeRunner(
        bundles=[
            ("rhods-operator.3.3.0", "quay.io/rhoai/bundle@sha256:aaa"),
            ("rhods-operator.3.3.1", "quay.io/rhoai/bundle@sha256:bbb"),
        ],
        operator_images={
            "quay.io/rhoai/bundle@sha256:aaa": "quay.io/rhoai/operator@sha256:111",
            "quay.io/rhoai/bundle@sha256:bbb": "quay.io/rhoai/operator@sha256:222",
        },
        revisions={
            "quay.io/rhoai/operator@sha256:111": "ffffffffffffffffffffffffffffffffffffffff",
            "quay.io/rhoai/operator@sha256:222": COMMIT,
        },
    )

    result = _service(runner, tmp_path).search(CATALOG, "v3.3", COMMIT[:8])

    assert result.found is True
    assert result.bundle == "rhods-operator.3.3.1 (quay.io/rhoai/bundle@sha256:bbb)"
    assert result.operator_image == "quay.io/rhoai/operator@sha256:222"
    assert result.commit == COMMIT
    assert ["podman", "rm", "c0"] in runner.calls
    assert ["podman", "rm", "c1"] in runner.calls


def test_search_reports_not_found_when_no_bundle_matches_version(tmp_path):
    runner = FakeRunner(
        bundles=[("rhods-operator.2.25.0", "quay.io/rhoai/bundle@sha256:aaa")],
        operator_images={},
        revisions={},
    )

    result = _service(runner, tmp_path).search(CATALOG, "3.3", COMMIT)

    assert result.found is False
    assert all(cmd[1] != "create" for cmd in runner.calls)


def test_search_skips_bundles_without_revision_label(tmp_path):
    runner = FakeRunner(
        bundles=[("rhods-operator.3.3.0", "quay.io/rhoai/bundle@sha256:aaa")],
        operator_images={"quay.io/rhoai/bundle@sha256:aaa": "quay.io/rhoai/operator@sha256:111"},
        revisions={},
    )

    assert _service(runner, tmp_path).search(CATALOG, "3.3", COMMIT).found is False


def test_search_raises_when_catalog_cannot_be_rendered(tmp_path):
    runner = FakeRunner([], {}, {}, render_rc=1)

    with pytest.raises(CatalogBuilderError, match="Failed to render catalog"):
        _service(runner, tmp_path).search(CATALOG, "3.3", COMMIT)
