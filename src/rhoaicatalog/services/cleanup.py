"""Run finalizer: restores the repository and removes temporary files."""

import os
import signal
import threading

from rhoaicatalog.constants import CATALOG_DIR
from rhoaicatalog.errors import CatalogBuilderError


class CleanupService:
    """Single-execution finalizer for a catalog build run.

    ``cleanup`` may be reached from the normal ``finally`` path and from a
    signal-triggered interruption; the ``done`` guard makes the second call a
    no-op.
    """

    HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM, getattr(signal, "SIGHUP", None))

    def __init__(self, git_service, filesystem_service, logger, console, repo_dir: str, dry_run: bool):
        self.git = git_service
        self.filesystem = filesystem_service
        self.logger = logger
        self.console = console
        self.repo_dir = repo_dir
        self.dry_run = dry_run
        self.done = False
        self._lock = threading.Lock()
        self._previous_handlers = {}

    def cleanup(self, state):
        self._shield_signals()
        with self._lock:
            if self.done:
                return
            self.done = True

        if state.temp_dir:
            self.filesystem.cleanup_dir(state.temp_dir)

        if self.dry_run:
            self.logger.info("[DRY-RUN] Skipping repository restore")
            return

        self.logger.info("Cleaning up...")
        self.filesystem.cleanup_dir(os.path.join(self.repo_dir, CATALOG_DIR))

        if state.original_branch:
            current = self.git.current_branch()
            if current and current != state.original_branch:
                self.logger.info("Returning to original branch: %s", state.original_branch)
                try:
                    self.git.checkout(state.original_branch)
                except CatalogBuilderError as exc:
                    self.logger.warning("Could not return to %s: %s", state.original_branch, exc)

        if state.stashed_changes:
            self.logger.info("Restoring stashed changes...")
            if self.git.stash_pop():
                self.console.print("[green]Stashed changes restored[/green]")
                state.stashed_changes = False
            else:
                message = "Could not restore stash automatically. Run: git stash pop"
                self.console.print(f"[yellow]{message}[/yellow]")
                self.logger.warning(message)

    @staticmethod
    def _raise_interrupt(signum, _frame):
        raise KeyboardInterrupt(f"Received signal {signum}")

    def install_signal_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in self.HANDLED_SIGNALS:
            if signum is None:
                continue
            self._previous_handlers[signum] = signal.signal(signum, self._raise_interrupt)

    def _shield_signals(self):
        for signum in self._previous_handlers:
            signal.signal(signum, signal.SIG_IGN)

    def restore_signal_handlers(self):
        for signum, handler in self._previous_handlers.items():
            if handler is not None:
                signal.signal(signum, handler)
        self._previous_handlers = {}
