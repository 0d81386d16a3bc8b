import json
import subprocess

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.services.opm import OpmService
from rhoaicatalog.services.verifier import CatalogVerifier


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args if args else message)


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeRunner:
    def __init__(self, stdout="", fail=False, dry_run=False):
        self.stdout = stdout
        self.fail = fail
        self.dry_run = dry_run
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, cwd=None):
        self.calls.append(list(cmd))
        if self.fail:
            raise CatalogBuilderError("render failed")
        return subprocess.CompletedProcess(cmd, 0, stdout=self.stdout, stderr="")


def _catalog_output(package="rhods-operator", bundles=2):
    documents = [{"schema": "olm.package", "name": package, "defaultChannel": "fast"}]
    names = [f"rhods-operator.3.{index}.0" for index in range(bundles)]
    documents += [{"schema": "olm.bundle", "name": name} for name in names]
    entries = [{"name": names[0]}] + [
        {"name": name, "replaces": previous} for previous, name in zip(names, names[1:])
    ]
    documents.append({"schema": "olm.channel", "name": "fast", "package": package, "entries": entries})
    return "\n".join(json.dumps(document) for document in documents)


def _verifier(runner, logger):
    return CatalogVerifier(
        runner=runner,
        opm_service=OpmService(runner=runner, logger=logger),
        logger=logger,
        console=DummyConsole(),
    )


def test_verify_accepts_matching_catalog():
    logger = DummyLogger()

    result = _verifier(FakeRunner(_catalog_output()), logger).verify("quay.io/x/catalog:t", 2)

    assert result.package_ok
    assert result.bundle_count_ok
    assert result.channel_entries[1] == ("rhods-operator.3.1.0", "rhods-operator.3.0.0")
    assert logger.warnings == []


def test_verify_warns_on_mismatch_without_failing():
    logger = DummyLogger()

    result = _verifier(FakeRunner(_catalog_output(package="other", bundles=1)), logger).verify("img", 3)

    assert not result.package_ok
    assert not result.bundle_count_ok
    assert len(logger.warnings) == 2


def test_verify_warns_when_render_fails():
    logger = DummyLogger()

    assert _verifier(FakeRunner(fail=True), logger).verify("img", 2) is None
    assert logger.warnings


def test_verify_skipped_in_dry_run():
    runner = FakeRunner(dry_run=True)

    assert _verifier(runner, DummyLogger()).verify("img", 2) is None
    assert runner.calls == []
