"""Subprocess execution service for the RHOAI catalog builder."""

import subprocess
from typing import List, Optional

from rich.markup import escape

from rhoaicatalog.errors import CatalogBuilderError
from rhoaicatalog.errors_catalog import actionable_error


class CommandRunner:
    """Runs external commands with consistent error handling.

    ``run`` is for read-only queries and always executes. ``execute`` is for
    actions with external effects (build, push, checkout, stash) and is the
    single place where dry-run mode short-circuits.
    """

    dry_run = False

    def __init__(self, logger, console=None):
        self.logger = logger
        self.console = console

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise CatalogBuilderError(actionable_error("command_not_found", command=cmd[0])) from exc
        except OSError as exc:
            raise CatalogBuilderError(f"Failed to execute command: {cmd_str}. {exc}") from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise CatalogBuilderError(message)

        self.logger.debug(message)
        return result

    def execute(
        self,
        cmd: List[str],
        capture_output: bool = False,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        self.logger.info("Executing: %s", " ".join(cmd))
        return self.run(cmd, check=True, capture_output=capture_output, cwd=cwd)


class DryRunCommandRunner(CommandRunner):
    """Logs effectful commands instead of executing them."""

    dry_run = True

    def execute(
        self,
        cmd: List[str],
        capture_output: bool = False,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        if self.console is not None:
            self.console.print(f"[yellow]\\[DRY-RUN][/yellow] {escape(cmd_str)}", highlight=False)
        self.logger.info("[DRY-RUN] %s", cmd_str)
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def build_runner(dry_run: bool, logger, console=None) -> CommandRunner:
    runner_cls = DryRunCommandRunner if dry_run else CommandRunner
    return runner_cls(logger=logger, console=console)
