import subprocess

import pytest

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.services.git import GitService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None


class FakeRunner:
    def __init__(self, dry_run=False, stash_error=False):
        self.dry_run = dry_run
        self.stash_error = stash_error
        self.executed = []

    def run(self, cmd, check=True, capture_output=False, cwd=None):
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    def execute(self, cmd, capture_output=False, cwd=None):
        self.executed.append((list(cmd), cwd))
        if self.stash_error:
            raise CatalogBuilderError("Command failed (1): git stash push")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def _git(runner):
    return GitService(runner=runner, logger=DummyLogger(), console=None, repo_dir="/repo")


def test_stash_push_includes_untracked_files_and_tagged_message():
    runner = FakeRunner()

    assert _git(runner).stash_push() is True

    cmd, cwd = runner.executed[0]
    assert cmd[:5] == ["git", "stash", "push", "-u", "-m"]
    assert cmd[5].startswith("rhoai-catalog-builder auto-stash ")
    assert cwd == "/repo"


def test_stash_push_in_dry_run_reports_nothing_stashed():
    assert _git(FakeRunner(dry_run=True)).stash_push() is False


def test_stash_push_failure_is_actionable():
    with pytest.raises(CatalogBuilderError, match="Suggested action"):
        _git(FakeRunner(stash_error=True)).stash_push()


def test_current_branch_is_none_for_empty_output():
    assert _git(FakeRunner()).current_branch() is None
