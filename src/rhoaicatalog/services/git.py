"""Source-control operations for the RHOAI catalog builder."""

from datetime import datetime
from typing import Optional

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error


class GitService:
    """Wraps the git commands used to switch branches safely."""

    STASH_MESSAGE_PREFIX = "rhoai-catalog-builder auto-stash"

    def __init__(self, runner, logger, console, repo_dir: str):
        self.runner = runner
        self.logger = logger
        self.console = console
        self.repo_dir = repo_dir

    def current_branch(self) -> Optional[str]:
        result = self.runner.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            check=False,
            capture_output=True,
            cwd=self.repo_dir,
        )
        branch = (result.stdout or "").strip()
        if result.returncode != 0 or not branch:
            return None
        return branch

    def has_local_changes(self) -> bool:
        result = self.runner.run(
            ["git", "status", "--porcelain"],
            capture_output=True,
            cwd=self.repo_dir,
        )
        return bool((result.stdout or "").strip())

    def stash_push(self) -> bool:
        """Stashes tracked and untracked changes. Returns True when a stash was pushed."""
        message = f"{self.STASH_MESSAGE_PREFIX} {datetime.now().strftime('%Y%m%d-%H%M%S')}"
        try:
            self.runner.execute(
                ["git", "stash", "push", "-u", "-m", message],
                capture_output=True,
                cwd=self.repo_dir,
            )
        except CatalogBuilderError as exc:
            raise CatalogBuilderError(actionable_error("stash_failed")) from exc
        return not self.runner.dry_run

    def stash_pop(self) -> bool:
        result = self.runner.run(
            ["git", "stash", "pop"],
            check=False,
            capture_output=True,
            cwd=self.repo_dir,
        )
        return result.returncode == 0

    def checkout(self, branch: str):
        self.runner.execute(["git", "checkout", branch], cwd=self.repo_dir)
