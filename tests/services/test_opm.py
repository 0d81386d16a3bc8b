import json
import subprocess

import pytest

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.services.opm import OpmService, bundle_name, parse_json_stream


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


class FakeRunner:
    dry_run = False

    def __init__(self, stdout="", returncode=0):
        self.stdout = stdout
        self.returncode = returncode
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, cwd=None):
        self.calls.append((list(cmd), cwd))
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="bad")


RENDERED = (
    json.dumps({"schema": "olm.package", "name": "rhods-operator"}, indent=4)
    + "\n"
    + json.dumps({"schema": "olm.bundle", "name": "rhods-operator.3.3.0", "image": "x"}, indent=4)
    + "\n"
)


def test_parse_json_stream_reads_concatenated_documents():
    documents = parse_json_stream(RENDERED)

    assert [document["schema"] for document in documents] == ["olm.package", "olm.bundle"]


def test_parse_json_stream_handles_empty_output():
    assert parse_json_stream("  \n") == []


def test_parse_json_stream_rejects_garbage():
    with pytest.raises(CatalogBuilderError, match="Invalid opm render output"):
        parse_json_stream('{"schema": "olm.bundle"} not-json')


def test_bundle_name_uses_bundle_schema_only():
    documents = [
        {"schema": "olm.package", "name": "rhods-operator"},
        {"schema": "olm.bundle", "name": "rhods-operator.2.25.2"},
    ]

    assert bundle_name(documents) == "rhods-operator.2.25.2"
    assert bundle_name(documents[:1]) is None


def test_render_returns_raw_text_and_documents():
    runner = FakeRunner(stdout=RENDERED)
    service = OpmService(runner=runner, logger=DummyLogger(), opm_bin="./bin/opm")

    text, documents = service.render("quay.io/x/bundle:1")

    assert text == RENDERED
    assert len(documents) == 2
    assert runner.calls[0][0] == ["./bin/opm", "render", "quay.io/x/bundle:1"]


def test_validate_returns_result_without_raising():
    runner = FakeRunner(returncode=1)
    service = OpmService(runner=runner, logger=DummyLogger())

    result = service.validate("catalog", cwd="/repo")

    assert result.returncode == 1
    assert runner.calls[0] == (["opm", "validate", "catalog"], "/repo")
